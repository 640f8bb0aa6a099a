# Form choices shared by the questionnaire, the validator and the prompt builder.

GENDERS = ("male", "female", "other")

MBTI_TYPES = (
    "INTJ", "INTP", "ENTJ", "ENTP",
    "INFJ", "INFP", "ENFJ", "ENFP",
    "ISTJ", "ISFJ", "ESTJ", "ESFJ",
    "ISTP", "ISFP", "ESTP", "ESFP",
)

BUDGET_OPTIONS = {
    "zh": ["0-50元", "50-100元", "100-200元", "200-500元", "500-1000元", "1000元以上"],
    "en": ["$0-50", "$50-100", "$100-200", "$200-500", "$500-1000", "$1000+"],
}

INTEREST_SUGGESTIONS = {
    "zh": [
        "阅读", "运动", "音乐", "电影", "旅行", "摄影", "绘画", "烹饪",
        "游戏", "健身", "瑜伽", "舞蹈", "书法", "园艺", "手工", "收藏",
        "宠物", "科技", "时尚", "美妆", "咖啡", "茶艺", "钓鱼", "登山",
    ],
    "en": [
        "Reading", "Sports", "Music", "Movies", "Travel", "Photography", "Painting", "Cooking",
        "Gaming", "Fitness", "Yoga", "Dance", "Calligraphy", "Gardening", "Crafts", "Collecting",
        "Pets", "Technology", "Fashion", "Beauty", "Coffee", "Tea", "Fishing", "Hiking",
    ],
}

PAST_GIFT_SUGGESTIONS = {
    "zh": [
        "鲜花", "巧克力", "香水", "手表", "项链", "耳环", "包包", "衣服",
        "鞋子", "书籍", "电子产品", "化妆品", "护肤品", "玩具", "装饰品",
        "文具", "运动用品", "乐器", "艺术品", "食品",
    ],
    "en": [
        "Flowers", "Chocolate", "Perfume", "Watch", "Necklace", "Earrings", "Bag", "Clothes",
        "Shoes", "Books", "Electronics", "Cosmetics", "Skincare", "Toys", "Decorations",
        "Stationery", "Sports gear", "Instrument", "Artwork", "Food",
    ],
}
