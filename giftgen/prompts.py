import re
from typing import Optional, Tuple

from .models import GiftRequest

SYSTEM_PROMPTS = {
    "zh": """你是礼物推荐专家。根据用户信息推荐3个生日礼物和1个祝福语。

要求：
- 个性化：结合年龄、性别、兴趣
- 符合预算范围
- 避免重复已送礼物
- 简洁实用的推荐理由
- 回答必须使用中文

必须返回JSON格式：
{
  "recommendations": [
    {"giftName": "礼物名", "reason": "推荐理由", "estimatedPrice": "价格范围"},
    {"giftName": "礼物名", "reason": "推荐理由", "estimatedPrice": "价格范围"},
    {"giftName": "礼物名", "reason": "推荐理由", "estimatedPrice": "价格范围"}
  ],
  "blessing": "生日祝福语"
}""",
    "en": """You are a gift recommendation expert. Based on user information, recommend 3 birthday gifts and 1 blessing message.

Requirements:
- Personalized: Consider age, gender, interests
- Within budget range
- Avoid duplicate gifts already given
- Concise and practical recommendation reasons
- All responses must be in English

Must return JSON format:
{
  "recommendations": [
    {"giftName": "Gift Name", "reason": "Recommendation reason", "estimatedPrice": "Price range"},
    {"giftName": "Gift Name", "reason": "Recommendation reason", "estimatedPrice": "Price range"},
    {"giftName": "Gift Name", "reason": "Recommendation reason", "estimatedPrice": "Price range"}
  ],
  "blessing": "Birthday blessing message"
}""",
}

FAST_SYSTEM_PROMPTS = {
    "zh": "你是生日礼物推荐专家，很会根据不同的用户推荐最适合他们的礼物，直接返回JSON格式结果。",
    "en": "You are a birthday gift expert who tailors gifts to each person. Reply with the JSON result only.",
}

GENDER_TEXT = {
    "zh": {"male": "男性", "female": "女性", "other": "其他"},
    "en": {"male": "Male", "female": "Female", "other": "Other"},
}

SEASON_TEXT = {
    "zh": {
        "spring": ("春季", "适合春天的礼物：鲜花、春游用品、轻薄服饰、户外运动装备", "春季生日，适合清新温暖的礼物"),
        "summer": ("夏季", "适合夏天的礼物：防晒用品、清凉饮品、游泳用品、户外装备", "夏季生日，适合清爽实用的礼物"),
        "autumn": ("秋季", "适合秋天的礼物：保温用品、秋装、温暖饰品、室内用品", "秋季生日，适合温馨舒适的礼物"),
        "winter": ("冬季", "适合冬天的礼物：保暖用品、热饮相关、室内娱乐、温暖配饰", "冬季生日，适合保暖温暖的礼物"),
    },
    "en": {
        "spring": ("Spring", "Spring-appropriate gifts: flowers, outdoor gear, light clothing, sports equipment",
                   "spring birthday, fresh and warm gifts fit well"),
        "summer": ("Summer", "Summer-appropriate gifts: sunscreen, cool drinks, swimming gear, outdoor equipment",
                   "summer birthday, light and practical gifts fit well"),
        "autumn": ("Autumn", "Autumn-appropriate gifts: warm items, fall fashion, cozy accessories, indoor items",
                   "autumn birthday, cozy and comfortable gifts fit well"),
        "winter": ("Winter", "Winter-appropriate gifts: warm items, hot drinks, indoor entertainment, cozy accessories",
                   "winter birthday, warm gifts fit well"),
    },
}

MONTH_NAMES = ["", "January", "February", "March", "April", "May", "June",
               "July", "August", "September", "October", "November", "December"]

MBTI_ANALYSIS = {
    "zh": {
        "INTJ": "建筑师型 - 独立思考，追求完美，喜欢有深度和实用价值的礼物",
        "INTP": "思想家型 - 好奇心强，喜欢探索，适合智力挑战和创新类礼物",
        "ENTJ": "指挥官型 - 天生领导者，喜欢高效实用、有品质感的礼物",
        "ENTP": "辩论家型 - 充满创意和热情，喜欢新奇有趣、富有创意的礼物",
        "INFJ": "提倡者型 - 理想主义，富有同情心，喜欢有意义、温暖贴心的礼物",
        "INFP": "调停者型 - 忠于价值观，有创造力，喜欢个性化、艺术性的礼物",
        "ENFJ": "主人公型 - 关心他人，善于激励，喜欢能分享或帮助他人的礼物",
        "ENFP": "竞选者型 - 热情洋溢，富有创造力，喜欢有趣、能激发灵感的礼物",
        "ISTJ": "物流师型 - 实用主义，事实导向，喜欢实用、高质量、经典的礼物",
        "ISFJ": "守护者型 - 温暖贴心，乐于助人，喜欢贴心、实用、有纪念意义的礼物",
        "ESTJ": "总经理型 - 优秀管理者，喜欢实用、有品质、能提升效率的礼物",
        "ESFJ": "执政官型 - 关心他人，善于合作，喜欢温馨、实用、能分享的礼物",
        "ISTP": "鉴赏家型 - 实用主义探索者，喜欢工具类、技术类、动手类礼物",
        "ISFP": "探险家型 - 灵活友善的艺术家，喜欢美观、个性化、艺术性的礼物",
        "ESTP": "企业家型 - 精力充沛，喜欢行动，适合运动、体验类、实用的礼物",
        "ESFP": "娱乐家型 - 热情友好，喜欢帮助他人，适合有趣、社交、体验类礼物",
    },
    "en": {
        "INTJ": "Architect - Independent thinker, perfectionist, prefers deep and practical gifts",
        "INTP": "Thinker - Curious and innovative, suitable for intellectual and creative gifts",
        "ENTJ": "Commander - Natural leader, prefers efficient, practical, high-quality gifts",
        "ENTP": "Debater - Creative and enthusiastic, likes novel, interesting, and creative gifts",
        "INFJ": "Advocate - Idealistic and empathetic, prefers meaningful and heartwarming gifts",
        "INFP": "Mediator - Value-driven and creative, likes personalized and artistic gifts",
        "ENFJ": "Protagonist - Caring and inspiring, prefers gifts that can be shared or help others",
        "ENFP": "Campaigner - Enthusiastic and creative, likes fun and inspiring gifts",
        "ISTJ": "Logistician - Practical and fact-oriented, prefers useful, high-quality, classic gifts",
        "ISFJ": "Defender - Warm and helpful, likes thoughtful, practical, memorable gifts",
        "ESTJ": "Executive - Excellent manager, prefers practical, quality, efficiency-enhancing gifts",
        "ESFJ": "Consul - Caring and cooperative, likes warm, practical, shareable gifts",
        "ISTP": "Virtuoso - Practical explorer, likes tools, technical, hands-on gifts",
        "ISFP": "Adventurer - Flexible and artistic, likes beautiful, personalized, artistic gifts",
        "ESTP": "Entrepreneur - Energetic and action-oriented, suitable for sports, experience, practical gifts",
        "ESFP": "Entertainer - Enthusiastic and helpful, suitable for fun, social, experience gifts",
    },
}

# Short trait line for the fast prompt
MBTI_TRAITS = {
    "zh": {
        "INTJ": "理性独立，喜欢有深度的礼物",
        "INTP": "好奇探索，喜欢创新有趣的礼物",
        "ENTJ": "高效领导，喜欢实用高品质的礼物",
        "ENTP": "创意热情，喜欢新奇有挑战的礼物",
        "INFJ": "理想温暖，喜欢有意义的礼物",
        "INFP": "个性创意，喜欢独特艺术的礼物",
        "ENFJ": "关爱他人，喜欢能分享的礼物",
        "ENFP": "热情灵感，喜欢有趣体验的礼物",
        "ISTJ": "实用稳重，喜欢经典实用的礼物",
        "ISFJ": "贴心温暖，喜欢实用温馨的礼物",
        "ESTJ": "高效管理，喜欢提升效率的礼物",
        "ESFJ": "和谐合作，喜欢温馨实用的礼物",
        "ISTP": "实用探索，喜欢工具技术的礼物",
        "ISFP": "艺术灵活，喜欢美观个性的礼物",
        "ESTP": "行动活力，喜欢运动体验的礼物",
        "ESFP": "热情社交，喜欢有趣互动的礼物",
    },
    "en": {
        "INTJ": "rational and independent, likes gifts with depth",
        "INTP": "curious explorer, likes innovative and fun gifts",
        "ENTJ": "efficient leader, likes practical high-quality gifts",
        "ENTP": "creative and passionate, likes novel, challenging gifts",
        "INFJ": "idealistic and warm, likes meaningful gifts",
        "INFP": "individual and creative, likes unique artistic gifts",
        "ENFJ": "cares for others, likes gifts that can be shared",
        "ENFP": "enthusiastic and inspired, likes fun experiences",
        "ISTJ": "steady and practical, likes classic useful gifts",
        "ISFJ": "caring and warm, likes cozy practical gifts",
        "ESTJ": "organized manager, likes gifts that boost efficiency",
        "ESFJ": "harmonious team player, likes warm practical gifts",
        "ISTP": "hands-on explorer, likes tools and tech",
        "ISFP": "flexible artist, likes beautiful personal gifts",
        "ESTP": "energetic doer, likes sports and experiences",
        "ESFP": "social and lively, likes fun interactive gifts",
    },
}

_BIRTHDAY_RE = re.compile(r"^(\d{1,2})-(\d{1,2})$")


def parse_birthday(birthday_date: Optional[str]) -> Optional[Tuple[int, int]]:
    m = _BIRTHDAY_RE.match((birthday_date or "").strip())
    if not m:
        return None
    month, day = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        return None
    return month, day


def season_for(birthday_date: Optional[str]) -> Optional[str]:
    parsed = parse_birthday(birthday_date)
    if parsed is None:
        return None
    month = parsed[0]
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "autumn"
    return "winter"


def convert_budget_to_english(budget: str) -> str:
    m = re.match(r"^(\d+)-(\d+)元$", budget)
    if m:
        return f"${m.group(1)}-{m.group(2)}"
    m = re.match(r"^(\d+)元以上$", budget)
    if m:
        return f"${m.group(1)}+"
    return budget


def birthday_analysis(birthday_date: Optional[str], language: str) -> str:
    parsed = parse_birthday(birthday_date)
    season = season_for(birthday_date)
    if parsed is None or season is None:
        return ""
    month, day = parsed
    name, gifts, _ = SEASON_TEXT[language][season]
    if language == "en":
        return f"{name} birthday ({MONTH_NAMES[month]} {day}), {gifts}"
    return f"{name}生日（{month}月{day}日），{gifts}"


def mbti_analysis(mbti: Optional[str], language: str) -> str:
    if not mbti:
        return ""
    fallback = (f"{mbti} personality type, please recommend gifts based on this personality"
                if language == "en" else f"{mbti}性格类型，请根据该性格特征推荐合适的礼物")
    return MBTI_ANALYSIS[language].get(mbti, fallback)


def _full_user_prompt(request: GiftRequest, language: str) -> str:
    gender = GENDER_TEXT[language][request.gender]
    birthday = birthday_analysis(request.birthdayDate, language)
    mbti = mbti_analysis(request.mbti, language)

    if language == "en":
        lines = [
            "Recipient Information:",
            f"- Gender: {gender}",
            f"- Age: {request.age} years old" + (f" ({request.mbti} personality)" if request.mbti else ""),
            f"- Interests: {', '.join(request.interests) or 'No specific interests'}",
            f"- Budget: {convert_budget_to_english(request.budget)}",
            f"- Previously given gifts: {', '.join(request.pastGifts) or 'None'}",
        ]
        if birthday:
            lines.append(f"- Birthday: {birthday}")
        if mbti:
            lines.append(f"- Personality: {mbti}")
        lines += ["", "Please recommend 3 birthday gifts and a blessing message, return in JSON format directly."]
        return "\n".join(lines)

    lines = [
        "收礼人信息：",
        f"- 性别：{gender}",
        f"- 年龄：{request.age}岁" + (f" ({request.mbti}性格)" if request.mbti else ""),
        f"- 兴趣：{'、'.join(request.interests) or '无特殊兴趣'}",
        f"- 预算：{request.budget}",
        f"- 已送过：{'、'.join(request.pastGifts) or '无'}",
    ]
    if birthday:
        lines.append(f"- 生日：{birthday}")
    if mbti:
        lines.append(f"- 性格：{mbti}")
    lines += ["", "请推荐3个生日礼物和祝福语，直接返回JSON格式。"]
    return "\n".join(lines)


def _fast_user_prompt(request: GiftRequest, language: str) -> str:
    season = season_for(request.birthdayDate)
    season_hint = SEASON_TEXT[language][season][2] if season else ""
    trait = MBTI_TRAITS[language].get(request.mbti or "", "")
    interests = request.interests[:2]
    past = request.pastGifts[:2]

    if language == "en":
        budget = convert_budget_to_english(request.budget)
        lines = [
            f"Recommend 3 birthday gifts for a {request.age}-year-old {GENDER_TEXT['en'][request.gender].lower()}:",
            f"Interests: {', '.join(interests) or 'none'}",
            f"Budget: {budget}",
            f"Avoid: {', '.join(past) or 'none'}",
        ]
        if season_hint:
            lines.append(f"Season: {season_hint}")
        if trait:
            lines.append(f"Personality: {request.mbti} ({trait})")
        lines += [
            "",
            "Requirements: consider season and personality, reasons under 30 words, blessing under 30 words.",
            "",
            "Return JSON:",
        ]
    else:
        budget = request.budget
        lines = [
            f"为{request.age}岁{GENDER_TEXT['zh'][request.gender]}推荐3个生日礼物：",
            f"兴趣：{'、'.join(interests) or '无'}",
            f"预算：{budget}",
            f"避免：{'、'.join(past) or '无'}",
        ]
        if season_hint:
            lines.append(f"时节：{season_hint}")
        if trait:
            lines.append(f"性格：{request.mbti}({trait})")
        lines += [
            "",
            "要求：结合季节和性格特征，给出推荐理由（60字内），和用心的祝福语（60字内）",
            "",
            "返回JSON：",
        ]

    item = '    {"giftName": "%s", "reason": "%s", "estimatedPrice": "%s"}' % (
        ("Gift name", "Reason", budget) if language == "en" else ("礼物名", "理由", budget)
    )
    blessing = "Short blessing" if language == "en" else "简短祝福"
    lines += [
        "{",
        '  "recommendations": [',
        ",\n".join([item] * 3),
        "  ],",
        f'  "blessing": "{blessing}"',
        "}",
    ]
    return "\n".join(lines)


def build_messages(request: GiftRequest, language: str = "zh", fast: bool = False) -> Tuple[str, str]:
    """Return the (system, user) prompt pair for a chat-completion call."""
    lang = language if language in SYSTEM_PROMPTS else "zh"
    if fast:
        return FAST_SYSTEM_PROMPTS[lang], _fast_user_prompt(request, lang)
    return SYSTEM_PROMPTS[lang], _full_user_prompt(request, lang)
