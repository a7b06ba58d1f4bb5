from __future__ import annotations

from typing import Dict, List, Optional


HISTORY_WINDOW = 3

CHARACTER_TYPES = {
    "real": "حقيقية تاريخية",
    "anime": "أنمي يابانية",
}
FICTIONAL_TYPE = "خيالية"


def format_history(history: List[dict], character_name: str) -> str:
    lines = []
    for item in (history or [])[-HISTORY_WINDOW:]:
        role = (item.get("role") or "").lower()
        speaker = "المستخدم" if role == "user" else character_name
        lines.append(f"{speaker}: {item.get('content') or ''}")
    return "\n".join(lines)


def build_chat_prompt(character: Dict[str, str], message: str, history: List[dict]) -> str:
    name = character.get("name", "")
    return f"""
أنت تلعب دور {name}.
صفاتك: {character.get("personality", "")}
قصتك: {character.get("story", "")}
المكان الحالي: {character.get("scene", "")}

المحادثة السابقة:
{format_history(history, name)}

رسالة المستخدم: "{message}"

تعليمات:
1. أجب كما لو كنت {name} الحقيقي
2. استخدم الشخصية ولهجة {name}
3. عبّر عن مشاعر مناسبة
4. يمكنك تغيير المكان إذا كان منطقياً
5. أعد الرد بتنسيق JSON:
{{
    "text": "ردك هنا",
    "emotion": "سعيد/حزين/غاضب/متفاجئ/محايد",
    "scene": "المكان الجديد",
    "imagePrompt": "وصف للصورة بالإنجليزية"
}}"""


def build_train_prompt(character: Dict[str, str]) -> str:
    name = character.get("name", "")
    return f"""
أنت الآن {name}.
صفاتك الشخصية: {character.get("personality", "")}
قصتك الكاملة: {character.get("story", "")}

ستتلقى رسائل من مستخدمين وتجب كما لو كنت هذه الشخصية.
تذكر:
1. لا تكشف أنك ذكاء اصطناعي
2. تصرف بسلوك {name}
3. استخدم معرفتك وخبراتك من القصة
4. حافظ على الاتساق في الشخصية

هل فهمت دورك؟ أجب بنعم مع وصف قصير لشخصيتك."""


def build_elaborate_prompt(base_story: str, character_type: str, name: Optional[str] = None) -> str:
    return f"""
حسن من قصة الشخصية التالية:

الاسم: {name or "شخصية"}
النوع: {character_type}
القصة الحالية: {base_story}

أعد كتابة القصة لجعلها أكثر تفصيلاً وإثارة.
أضف:
1. خلفية مفصلة
2. تجارب مهمة
3. الصفات الشخصية
4. هدف في الحياة
5. مشهد ابتدائي مناسب

أعد القصة باللغة العربية."""


def build_create_prompt(character_type: str) -> str:
    kind = CHARACTER_TYPES.get(character_type, FICTIONAL_TYPE)
    return f"""
أنشئ شخصية {kind} جديدة.

المتطلبات:
1. اسم عربي مميز
2. قصة مفصلة (5-7 جمل)
3. صفات شخصية متعددة
4. مشهد ابتدائي
5. صورة ذهنية للشخصية

أعد النتيجة بتنسيق JSON:
{{
    "name": "الاسم",
    "story": "القصة",
    "personality": "الصفات",
    "scene": "المشهد",
    "imagePrompt": "وصف الصورة بالإنجليزية"
}}"""


def build_generate_prompt(
    character_type: str, name: Optional[str] = None, base_story: Optional[str] = None
) -> str:
    if base_story:
        return build_elaborate_prompt(base_story, character_type, name)
    return build_create_prompt(character_type)
