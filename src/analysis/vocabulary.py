"""Keyword tables used by the freeform normalizer.

The model answers in Arabic, but English surface forms are listed too so that
mixed-language output (and English-language models) classify the same way.
Tables map a surface form to a canonical key; lookups are case-insensitive.
"""

CONCLUSION_SECTION = "conclusion"

SECTION_TITLES: dict[str, str] = {
    # Arabic
    "الموجودات": "findings",
    "التحليل": "analysis",
    "التوصيات": "recommendations",
    "النتيجة النهائية": CONCLUSION_SECTION,
    "النتيجة": CONCLUSION_SECTION,
    "الخلاصة": CONCLUSION_SECTION,
    "وصف الصورة": "image_description",
    "ماذا يظهر في الصورة": "image_description",
    "الملاحظات السريرية": "clinical_notes",
    "الملاحظات غير الطبيعية": "abnormal_findings",
    # English
    "findings": "findings",
    "analysis": "analysis",
    "recommendations": "recommendations",
    "final result": CONCLUSION_SECTION,
    "summary": CONCLUSION_SECTION,
    "conclusion": CONCLUSION_SECTION,
    "image description": "image_description",
    "what the image shows": "image_description",
    "clinical notes": "clinical_notes",
    "abnormal findings": "abnormal_findings",
}

DIAGNOSIS_KEYWORDS: tuple[str, ...] = (
    "التشخيص النهائي",
    "النتيجة النهائية",
    "الحالة النهائية",
    "الخلاصة النهائية",
    "التشخيص",
    "النتيجة",
    "الحالة",
    "الخلاصة",
    "الاستنتاج",
    "diagnosis",
    "diagnosis:",
    "diagnosis's",
    "result",
    "result:",
    "condition",
    "condition:",
    "conclusion",
    "conclusion:",
)

# Statements about whether something is wrong.
STATUS_KEYWORDS: tuple[str, ...] = (
    "غير مصاب",
    "مصاب",
    "غير طبيعي",
    "طبيعي",
    "إيجابي",
    "سلبي",
    "unaffected",
    "affected",
    "abnormal",
    "normal",
    "positive",
    "negative",
)

# Weaker presence/health wording; only counts together with a status or stage.
PRESENCE_KEYWORDS: tuple[str, ...] = (
    "غير سليم",
    "سليم",
    "غير موجود",
    "موجود",
    "غير ظاهر",
    "ظاهر",
    "healthy",
    "present",
    "absent",
    "visible",
)

STAGE_KEYWORDS: tuple[str, ...] = (
    "مرحلة",
    "درجة",
    "stage",
    "grade",
)
