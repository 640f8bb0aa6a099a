import logging
import random
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .models import GiftRecommendation, GiftRequest, GiftResponse
from .normalizer import FILLERS
from .prompts import convert_budget_to_english, season_for

logger = logging.getLogger(__name__)


# ---------------- rule tables ----------------
_INTEREST_GIFTS = {
    "zh": {
        "阅读": ["精装版经典文学", "电子书阅读器", "创意书签套装"],
        "音乐": ["蓝牙音响", "专业耳机", "音乐会门票"],
        "运动": ["运动装备", "健身手环", "运动水杯"],
        "旅行": ["旅行背包", "便携充电宝", "旅行收纳套装"],
        "摄影": ["相机配件", "摄影灯具", "照片打印机"],
        "烹饪": ["厨具套装", "料理书籍", "调料礼盒"],
        "游戏": ["游戏手柄", "游戏周边", "电竞椅"],
        "美妆": ["化妆品套装", "美容仪器", "香水礼盒"],
        "电影": ["家庭投影仪", "电影周边收藏", "观影会员年卡"],
        "绘画": ["专业绘画工具套装", "水彩颜料礼盒", "数位绘画板"],
        "健身": ["智能健身手环", "可调节哑铃", "筋膜枪"],
        "瑜伽": ["高端瑜伽垫套装", "瑜伽服", "冥想香薰"],
        "舞蹈": ["专业舞蹈服装", "舞蹈课程体验券", "舞蹈鞋"],
        "书法": ["名家书法套装", "文房四宝礼盒", "手工宣纸"],
        "园艺": ["精美园艺工具套装", "多肉植物组合", "智能花盆"],
        "手工": ["高级手工材料包", "DIY木工套装", "手工皮具材料"],
        "收藏": ["限量版收藏品", "收藏展示柜", "纪念币套装"],
        "宠物": ["宠物智能用品", "宠物定制肖像", "宠物自动喂食器"],
        "科技": ["最新科技产品", "智能手表", "无线充电器"],
        "时尚": ["设计师品牌配饰", "时尚墨镜", "真丝围巾"],
        "咖啡": ["专业咖啡器具套装", "手冲咖啡壶", "精品咖啡豆礼盒"],
        "茶艺": ["精品茶具套装", "名优茶叶礼盒", "便携旅行茶具"],
        "钓鱼": ["专业钓鱼装备", "钓鱼收纳箱", "户外折叠椅"],
        "登山": ["户外登山装备", "登山杖", "轻量冲锋衣"],
    },
    "en": {
        "reading": ["Hardcover classic literature set", "E-book reader", "Creative bookmark set"],
        "music": ["Bluetooth speaker", "Studio headphones", "Concert tickets"],
        "sports": ["Sports gear set", "Fitness band", "Sports water bottle"],
        "travel": ["Travel backpack", "Portable power bank", "Travel organizer set"],
        "photography": ["Camera accessories", "Photography light", "Photo printer"],
        "cooking": ["Cookware set", "Cookbook", "Spice gift box"],
        "gaming": ["Game controller", "Gaming merchandise", "Gaming chair"],
        "beauty": ["Makeup set", "Beauty device", "Perfume gift box"],
        "movies": ["Home projector", "Movie memorabilia", "Streaming membership"],
        "painting": ["Professional painting kit", "Watercolor gift box", "Drawing tablet"],
        "fitness": ["Smart fitness tracker", "Adjustable dumbbells", "Massage gun"],
        "yoga": ["Premium yoga mat set", "Yoga wear", "Meditation aroma set"],
        "dance": ["Dance outfit", "Dance class voucher", "Dance shoes"],
        "calligraphy": ["Calligraphy brush set", "Ink and paper gift box", "Handmade rice paper"],
        "gardening": ["Gardening tool set", "Succulent collection", "Smart planter"],
        "crafts": ["Craft material kit", "DIY woodworking kit", "Leather craft kit"],
        "collecting": ["Limited edition collectible", "Display cabinet", "Commemorative coin set"],
        "pets": ["Smart pet gadget", "Custom pet portrait", "Automatic pet feeder"],
        "technology": ["Latest tech gadget", "Smart watch", "Wireless charger"],
        "fashion": ["Designer accessory", "Fashion sunglasses", "Silk scarf"],
        "coffee": ["Coffee brewing set", "Pour-over kettle", "Specialty coffee beans"],
        "tea": ["Fine tea set", "Premium tea gift box", "Portable tea set"],
        "fishing": ["Fishing gear set", "Tackle box", "Folding outdoor chair"],
        "hiking": ["Hiking gear", "Trekking poles", "Lightweight rain jacket"],
    },
}

MBTI_GIFTS: Dict[str, Dict[str, Tuple[str, str]]] = {
    "zh": {
        "INTJ": ("智能规划日记本", "适合喜欢规划和思考的建筑师性格"),
        "INTP": ("科学实验套装", "满足思想家的好奇心和探索欲"),
        "ENTJ": ("高端商务配件", "符合指挥官的领导气质"),
        "ENTP": ("创意DIY套装", "激发辩论家的创新思维"),
        "INFJ": ("艺术创作工具", "适合提倡者的理想主义和创造力"),
        "INFP": ("个性化定制相册", "符合调停者重视个人价值的特质"),
        "ENFJ": ("团队活动游戏", "适合主人公喜欢激励他人的特质"),
        "ENFP": ("多功能创意工具", "满足竞选者的热情和创造力"),
        "ISTJ": ("高品质实用工具", "符合物流师实用主义的特点"),
        "ISFJ": ("温馨家居用品", "适合守护者温暖贴心的性格"),
        "ESTJ": ("专业管理工具", "符合总经理的组织管理能力"),
        "ESFJ": ("社交聚会用品", "适合执政官善于合作的特质"),
        "ISTP": ("精密手工工具", "满足鉴赏家的实用探索需求"),
        "ISFP": ("艺术创作材料", "适合探险家的创造力和灵活性"),
        "ESTP": ("户外运动装备", "符合企业家精力充沛的特质"),
        "ESFP": ("社交娱乐用品", "适合娱乐家热情友好的性格"),
    },
    "en": {
        "INTJ": ("Smart planner notebook", "suits the Architect's love of planning and thinking"),
        "INTP": ("Science experiment kit", "feeds the Thinker's curiosity"),
        "ENTJ": ("Premium business accessories", "matches the Commander's leadership style"),
        "ENTP": ("Creative DIY kit", "sparks the Debater's inventive mind"),
        "INFJ": ("Art creation tools", "fits the Advocate's idealism and creativity"),
        "INFP": ("Personalized photo album", "honors the Mediator's personal values"),
        "ENFJ": ("Team party game", "suits the Protagonist who loves inspiring others"),
        "ENFP": ("Multi-purpose creative tool", "matches the Campaigner's enthusiasm"),
        "ISTJ": ("High-quality practical tool", "fits the Logistician's practical nature"),
        "ISFJ": ("Cozy home goods", "suits the Defender's warm personality"),
        "ESTJ": ("Professional organizer set", "matches the Executive's management skills"),
        "ESFJ": ("Party hosting set", "fits the Consul's cooperative spirit"),
        "ISTP": ("Precision hand tools", "meets the Virtuoso's hands-on curiosity"),
        "ISFP": ("Art supplies", "suits the Adventurer's creativity"),
        "ESTP": ("Outdoor sports gear", "matches the Entrepreneur's energy"),
        "ESFP": ("Social entertainment kit", "fits the Entertainer's outgoing nature"),
    },
}

MBTI_WISHES = {
    "zh": {
        "INTJ": "愿你的每个计划都能完美实现！",
        "INTP": "愿你的好奇心永远得到满足！",
        "ENTJ": "愿你的领导力带来更多成就！",
        "ENTP": "愿你的创意永远闪闪发光！",
        "INFJ": "愿你的理想都能照进现实！",
        "INFP": "愿你的内心世界永远丰富多彩！",
        "ENFJ": "愿你的温暖感染更多的人！",
        "ENFP": "愿你的热情点亮每一天！",
        "ISTJ": "愿你的努力都有美好回报！",
        "ISFJ": "愿你的善良得到世界的温柔以待！",
        "ESTJ": "愿你的目标都能顺利达成！",
        "ESFJ": "愿你的关爱得到同样的回馈！",
        "ISTP": "愿你的每次探索都有新发现！",
        "ISFP": "愿你的艺术天赋绽放光彩！",
        "ESTP": "愿你的每次冒险都精彩纷呈！",
        "ESFP": "愿你的快乐感染身边每个人！",
    },
    "en": {
        "INTJ": "May every plan of yours come together perfectly!",
        "INTP": "May your curiosity always be satisfied!",
        "ENTJ": "May your leadership bring even more success!",
        "ENTP": "May your ideas keep shining!",
        "INFJ": "May your ideals come true!",
        "INFP": "May your inner world stay rich and colorful!",
        "ENFJ": "May your warmth reach even more people!",
        "ENFP": "May your enthusiasm light up every day!",
        "ISTJ": "May all your hard work be rewarded!",
        "ISFJ": "May the world be as kind to you as you are to it!",
        "ESTJ": "May you reach every goal you set!",
        "ESFJ": "May the care you give come back to you!",
        "ISTP": "May every exploration bring a new discovery!",
        "ISFP": "May your artistic talent shine!",
        "ESTP": "May every adventure be a thrilling one!",
        "ESFP": "May your joy spread to everyone around you!",
    },
}

UNIVERSAL_GIFTS = {
    "zh": ["定制化照片相册", "个性化马克杯", "香薰蜡烛套装", "植物盆栽", "手工巧克力", "丝巾围巾", "保温杯", "小夜灯"],
    "en": ["Custom photo album", "Personalized mug", "Scented candle set", "Potted plant",
           "Handmade chocolates", "Silk scarf", "Insulated tumbler", "Night light"],
}

BLESSING_TEMPLATES = {
    "zh": [
        "🎂 祝{age}岁的{season}生日快乐！愿每一天都充满惊喜和快乐！",
        "🎉 {season}生日快乐！愿新的一岁带来更多美好和成长！",
        "✨ 祝{season}生日快乐！愿所有的美好都如期而至！",
        "🎈 {age}岁{season}生日快乐！愿未来的每一天都比今天更精彩！",
    ],
    "en": [
        "🎂 Happy {season}birthday at {age}! May every day be full of surprises and joy!",
        "🎉 Happy {season}birthday! May the new year of life bring more beauty and growth!",
        "✨ Happy {season}birthday! May all good things arrive right on time!",
        "🎈 Happy {season}birthday on turning {age}! May every day ahead be even brighter than today!",
    ],
}

_SEASON_PREFIX = {
    "zh": {"spring": "春日", "summer": "夏日", "autumn": "秋日", "winter": "冬日"},
    "en": {"spring": "spring ", "summer": "summer ", "autumn": "autumn ", "winter": "winter "},
}

_GENDER_TEXT = {
    "zh": {"male": "男性", "female": "女性", "other": "朋友"},
    "en": {"male": "man", "female": "woman", "other": "friend"},
}


def _lower_keys(table: Dict[str, List[str]]) -> Dict[str, List[str]]:
    return {k.lower(): v for k, v in table.items()}


INTEREST_GIFTS = {lang: _lower_keys(table) for lang, table in _INTEREST_GIFTS.items()}


def _mentions_past_gift(name: str, past_gifts: Sequence[str]) -> bool:
    lowered = name.lower()
    for past in past_gifts:
        p = past.strip().lower()
        if p and (p in lowered or lowered in p):
            return True
    return False


class MockGenerator:
    """Offline, rule-based GiftResponse. Needs no network and never fails.

    Gift names always come from the fixed tables above; only the pick inside
    a pool and the blessing template are random, drawn from ``rng``.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def _pick(self, pool: Sequence[str], used: Set[str], past_gifts: Sequence[str]) -> Optional[str]:
        candidates = [g for g in pool if g not in used and not _mentions_past_gift(g, past_gifts)]
        if not candidates:
            return None
        return self.rng.choice(candidates)

    def _interest_gift(self, interest: str, lang: str, used: Set[str], past: Sequence[str]) -> Optional[str]:
        pool = INTEREST_GIFTS[lang].get(interest.strip().lower())
        if pool:
            return self._pick(pool, used, past)
        name = f"{interest} themed custom gift" if lang == "en" else f"{interest}主题定制礼品"
        return None if name in used else name

    def generate(self, request: GiftRequest, language: Optional[str] = None) -> GiftResponse:
        lang = language if language in INTEREST_GIFTS else request.language
        age = request.age
        gender = _GENDER_TEXT[lang][request.gender]
        price = convert_budget_to_english(request.budget) if lang == "en" else request.budget
        past = request.pastGifts
        used: Set[str] = set()
        recs: List[GiftRecommendation] = []

        def add(name: str, reason: str) -> None:
            used.add(name)
            recs.append(GiftRecommendation(giftName=name, reason=reason, estimatedPrice=price))

        def add_interest(interest: str) -> None:
            name = self._interest_gift(interest, lang, used, past)
            if name is None:
                return
            if lang == "en":
                add(name, f'Matches the "{interest}" interest you mentioned, a great fit for a {age}-year-old {gender}.')
            else:
                add(name, f'结合您提到的"{interest}"兴趣，这个礼物非常适合{age}岁的{gender}。')

        interests = [i for i in request.interests if i.strip()]
        if interests:
            add_interest(interests[0])

        mbti = (request.mbti or "").upper()
        if mbti in MBTI_GIFTS[lang]:
            name, why = MBTI_GIFTS[lang][mbti]
            if name not in used and not _mentions_past_gift(name, past):
                if lang == "en":
                    add(name, f"As an {mbti}, this {why} and reflects their personality.")
                else:
                    add(name, f"基于{mbti}性格类型，{why}，这个礼物能够很好地契合TA的个性特点。")

        if len(interests) > 1 and len(recs) < 3:
            add_interest(interests[1])

        while len(recs) < 3:
            name = self._pick(UNIVERSAL_GIFTS[lang], used, past)
            if name is None:
                filler = FILLERS[lang]
                recs.append(GiftRecommendation(giftName=filler["giftName"], reason=filler["reason"],
                                               estimatedPrice=price))
                continue
            if lang == "en":
                add(name, f"A practical and memorable gift for a {age}-year-old {gender}.")
            else:
                add(name, f"这是一个实用且有纪念意义的礼物，适合{age}岁的{gender}。")

        season = season_for(request.birthdayDate)
        prefix = _SEASON_PREFIX[lang][season] if season else ""
        blessing = self.rng.choice(BLESSING_TEMPLATES[lang]).format(age=age, season=prefix)
        wish = MBTI_WISHES[lang].get(mbti)
        if wish:
            blessing = f"{blessing} {wish}"

        logger.info("Mock response for interests=%s mbti=%s: %s", interests[:2], mbti or "-",
                    ", ".join(r.giftName for r in recs[:3]))
        return GiftResponse(recommendations=recs[:3], blessing=blessing)
