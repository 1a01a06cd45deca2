# tercih_dialogue/lexicon.py
"""
Lexicon

Declarative tables used by the normalizer, extractors, classifier, context
store and follow-up generator. Every consumer takes its table as a
constructor argument and falls back to the defaults defined here, so the
matching algorithms stay generic and the tables can be swapped in tests.

All keyword-style entries are written in their normalized (lower-case)
form unless noted otherwise; canonical entity names keep their display
spelling.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------

# Turkish letters kept by normalize() next to ASCII word characters.
SCRIPT_LETTERS = "çğıöşü"

ASCII_FOLD: Dict[str, str] = {
    "ç": "c", "ğ": "g", "ı": "i", "ö": "o", "ş": "s", "ü": "u",
    "Ç": "C", "Ğ": "G", "İ": "I", "Ö": "O", "Ş": "S", "Ü": "U",
}

ABBREVIATIONS: Dict[str, str] = {
    "üni": "üniversitesi",
    "üniv": "üniversitesi",
    "univ": "üniversitesi",
    "müh": "mühendisliği",
    "muh": "mühendisliği",
    "bil": "bilgisayar",
    "elk": "elektrik",
    "end": "endüstri",
    "mak": "makine",
    "ins": "inşaat",
    "çev_müh": "çevre",
    "işl": "işletme",
    "ikt": "iktisat",
    "eko": "ekonomi",
    "mal": "maliye",
    "ula": "uluslararası",
    "siy": "siyaset",
    "sos": "sosyoloji",
    "psi": "psikoloji",
    "tar": "tarih",
    "coğ": "coğrafya",
    "türk": "türk dili",
    "ing": "ingiliz dili",
    "çev": "çevirmenlik",
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

UNIVERSITY_ALIASES: Dict[str, List[str]] = {
    "İstanbul Üniversitesi": ["İÜ", "İ.Ü.", "istanbul üni", "istanbul university"],
    "İstanbul Teknik Üniversitesi": ["İTÜ", "İ.T.Ü.", "ITU", "teknik üni"],
    "Boğaziçi Üniversitesi": ["Boğaziçi", "BÜ", "B.Ü.", "Bosphorus"],
    "Orta Doğu Teknik Üniversitesi": ["ODTÜ", "O.D.T.Ü.", "METU", "orta doğu"],
    "Ankara Üniversitesi": ["AÜ", "A.Ü.", "ankara üni"],
    "Hacettepe Üniversitesi": ["Hacettepe", "HÜ", "H.Ü."],
    "Gazi Üniversitesi": ["Gazi", "GÜ", "G.Ü."],
    "Marmara Üniversitesi": ["Marmara", "MÜ", "M.Ü."],
    "Ege Üniversitesi": ["Ege", "EÜ", "E.Ü."],
    "Dokuz Eylül Üniversitesi": ["DEÜ", "D.E.Ü.", "dokuz eylül"],
    "Bilkent Üniversitesi": ["Bilkent"],
    "Koç Üniversitesi": ["Koç", "KÜ", "K.Ü."],
    "Sabancı Üniversitesi": ["Sabancı", "SÜ", "S.Ü."],
}

DEPARTMENT_ALIASES: Dict[str, List[str]] = {
    "Bilgisayar Mühendisliği": ["bil müh", "bilgisayar müh", "computer engineering", "cs"],
    "Elektrik Mühendisliği": ["elk müh", "elektrik müh", "electrical engineering"],
    "Endüstri Mühendisliği": ["end müh", "endüstri müh", "industrial engineering"],
    "Makine Mühendisliği": ["mak müh", "makine müh", "mechanical engineering"],
    "İnşaat Mühendisliği": ["ins müh", "inşaat müh", "civil engineering"],
    "Çevre Mühendisliği": ["çev müh", "çevre müh", "environmental engineering"],
    "İşletme": ["işl", "business", "management"],
    "İktisat": ["ikt", "economics", "ekonomi"],
    "Hukuk": ["law", "hukuk fakültesi"],
    "Tıp": ["medicine", "tıp fakültesi"],
    "Diş Hekimliği": ["dentistry", "diş"],
    "Eczacılık": ["pharmacy", "eczane"],
    "Hemşirelik": ["nursing", "hemşire"],
    "Psikoloji": ["psi", "psychology"],
    "Sosyoloji": ["sos", "sociology"],
    "Siyaset Bilimi": ["siy bil", "political science"],
    "Uluslararası İlişkiler": ["ula ili", "international relations", "ir"],
    "Türk Dili ve Edebiyatı": ["türk dili", "turkish literature"],
    "İngiliz Dili ve Edebiyatı": ["ing dili", "english literature"],
    "Çevirmenlik": ["çev", "translation"],
}

# Suffix phrases only; bare acronyms are matched by the alias tables.
UNIVERSITY_PATTERNS: List[str] = [
    r"\b(\w+(?:\s+\w+){0,3}?)\s+(?:üniversitesi|üni|university)\b",
]

# Inflections allowed directly after a long alias ("marmarada",
# "boğaziçinde"); anything else glued to the alias is a different word.
CASE_SUFFIXES: List[str] = [
    "ndan", "nden", "nın", "nin", "nun", "nün", "nda", "nde",
    "dan", "den", "tan", "ten", "yla", "yle", "yı", "yi", "yu", "yü",
    "ya", "ye", "da", "de", "ta", "te", "ın", "in", "un", "ün",
    "na", "ne", "nı", "ni", "nu", "nü", "lı", "li", "lu", "lü",
    "a", "e", "ı", "i", "u", "ü",
]

DEPARTMENT_PATTERNS: List[str] = [
    r"((?:bilgisayar|elektrik|endüstri|makine|inşaat|çevre)\s*(?:mühendisliği|müh\.?))",
    r"(tıp|diş\s*hekimliği|eczacılık|hemşirelik)",
    r"(işletme|iktisat|ekonomi|maliye)",
    r"(hukuk|siyaset\s*bilimi|sosyoloji|psikoloji|tarih|coğrafya)",
    r"(türk\s*(?:dili|edebiyatı)|ingiliz\s*(?:dili|edebiyatı)|çevirmenlik)",
]

SCORE_TYPES: Dict[str, str] = {
    "tyt": "TYT",
    "ayt": "AYT",
    "say": "SAY",
    "ea": "EA",
    "söz": "SÖZ",
    "soz": "SÖZ",
    "dil": "DIL",
    "temel yeterlilik": "TYT",
    "alan yeterlilik": "AYT",
    "sayısal": "SAY",
    "eşit ağırlık": "EA",
    "sözel": "SÖZ",
}

# A standalone count of at most four digits; longer digit runs are not counts.
_NUM = r"(?<!\d)(\d{1,4})(?!\d)"

# (pattern, display template); "{0}" is the captured percentage digits.
LANGUAGE_PATTERNS: List[Tuple[str, str]] = [
    (r"%?(?<!\d)(\d{1,3})(?!\d)\s*(?:ingilizce|ing|english)\b", "%{0} İngilizce"),
    (r"%?(?<!\d)(\d{1,3})(?!\d)\s*(?:türkçe|tr|turkish)\b", "%{0} Türkçe"),
    (r"\b(?:ingilizce|english)\b", "İngilizce"),
    (r"\b(?:türkçe|turkish)\b", "Türkçe"),
]

_PAIR = r"\s*" + _NUM + r"(?:\s*doğru)?(?:\s*" + _NUM + r"\s*yanlış)?"

# (pattern, subject key); group 1 = correct, optional group 2 = wrong.
SUBJECT_NET_PATTERNS: List[Tuple[str, str]] = [
    (r"(?:tyt\s*)?türkçe" + _PAIR, "turkish"),
    (r"(?:tyt\s*)?matematik" + _PAIR, "math"),
    (r"(?:tyt\s*)?fen\s*(?:bilimleri?)?" + _PAIR, "science"),
    (r"(?:tyt\s*)?sosyal\s*(?:bilimler?)?" + _PAIR, "social"),
    (r"(?:ayt\s*)?matematik" + _PAIR, "math"),
    (r"(?:ayt\s*)?fizik" + _PAIR, "physics"),
    (r"(?:ayt\s*)?kimya" + _PAIR, "chemistry"),
    (r"(?:ayt\s*)?biyoloji" + _PAIR, "biology"),
    (r"(?:ayt\s*)?edebiyat" + _PAIR, "literature"),
    (r"(?:ayt\s*)?tarih" + _PAIR, "history"),
    (r"(?:ayt\s*)?coğrafya" + _PAIR, "geography"),
    (r"(?:ayt\s*)?felsefe" + _PAIR, "philosophy"),
    (r"(?:ayt\s*)?din\s*(?:kültürü?)?" + _PAIR, "religion"),
]

# (pattern, entity type); group 1 = the integer value.
NUMERIC_PATTERNS: List[Tuple[str, str]] = [
    (_NUM + r"\s*doğru", "correct"),
    (_NUM + r"\s*yanlış", "wrong"),
    (_NUM + r"\s*net", "net"),
    (_NUM + r"\s*puan", "targetScore"),
]


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------

# Enumeration order is the tie-break order.
INTENT_PATTERNS: Dict[str, List[Dict[str, Any]]] = {
    "tyt_calculation": [
        {"keywords": ["tyt", "tyt net", "tyt hesapla", "tyt hesaplama"], "weight": 1.0},
        {"keywords": ["temel yeterlilik", "temel yeterlilik testi"], "weight": 0.9},
        {"keywords": ["tyt türkçe", "tyt matematik", "tyt fen", "tyt sosyal"], "weight": 0.8},
        {"keywords": ["tyt netim", "tyt puanım"], "weight": 0.9},
    ],
    "ayt_calculation": [
        {"keywords": ["ayt", "ayt net", "ayt hesapla", "ayt hesaplama"], "weight": 1.0},
        {"keywords": ["alan yeterlilik", "alan yeterlilik testi"], "weight": 0.9},
        {"keywords": ["ayt say", "ayt ea", "ayt söz", "ayt dil"], "weight": 0.8},
        {"keywords": ["sayısal", "eşit ağırlık", "sözel"], "weight": 0.7},
        {"keywords": ["ayt matematik", "ayt fizik", "ayt kimya", "ayt biyoloji"], "weight": 0.8},
    ],
    "study_advice": [
        {"keywords": ["tavsiye", "öneri", "advice", "suggestion"], "weight": 1.0},
        {"keywords": ["nasıl çalışmalı", "çalışma yöntemi", "study method"], "weight": 0.9},
        {"keywords": ["başarılı öğrenci", "deneyim", "experience"], "weight": 0.8},
        {"keywords": ["motivasyon", "motivation", "ilham"], "weight": 0.7},
        {"keywords": ["strateji", "plan", "strategy"], "weight": 0.6},
    ],
    "net_calculation": [
        {"keywords": ["net", "kaç net", "net sayısı", "net hesapla", "net gerekli"], "weight": 1.0},
        {"keywords": ["kaç soru", "soru sayısı", "doğru sayısı"], "weight": 0.9},
        {"keywords": ["hesapla", "hesaplama", "calculate"], "weight": 0.8},
        {"keywords": ["gerekli", "lazım", "need", "required"], "weight": 0.7},
        {"keywords": ["yapmalı", "yapmalıyım", "should"], "weight": 0.6},
    ],
    "base_score": [
        {"keywords": ["taban puan", "base score", "minimum puan"], "weight": 1.0},
        {"keywords": ["geçen sene", "geçen yıl", "last year"], "weight": 0.9},
        {"keywords": ["puan", "score", "point"], "weight": 0.8},
        {"keywords": ["kaç puan", "ne kadar puan", "how many points"], "weight": 0.9},
        {"keywords": ["en düşük", "minimum", "lowest"], "weight": 0.7},
    ],
    "quota_inquiry": [
        {"keywords": ["kontenjan", "quota", "capacity"], "weight": 1.0},
        {"keywords": ["kaç kişi", "öğrenci sayısı", "how many students"], "weight": 0.9},
        {"keywords": ["kapasite", "alım sayısı", "intake"], "weight": 0.8},
        {"keywords": ["yer", "slot", "position"], "weight": 0.7},
    ],
    "department_search": [
        {"keywords": ["bölüm", "department", "program"], "weight": 1.0},
        {"keywords": ["hangi bölümler", "which departments", "what programs"], "weight": 0.9},
        {"keywords": ["bölüm listesi", "department list"], "weight": 0.8},
        {"keywords": ["ne okumalı", "what to study", "hangi alan"], "weight": 0.7},
        {"keywords": ["seçenek", "option", "choice"], "weight": 0.6},
    ],
    # A single social keyword must reach confidence above 0.7 on its own.
    "greeting": [
        {"keywords": ["merhaba", "hello", "selam", "selamlar", "mrb"], "weight": 1.6},
        {"keywords": ["iyi günler", "good day", "günaydın"], "weight": 0.9},
        {"keywords": ["nasılsın", "how are you", "naber"], "weight": 0.8},
    ],
    "help": [
        {"keywords": ["yardım", "help", "nasıl", "how"], "weight": 1.4},
        {"keywords": ["ne yapabilirim", "what can i do", "neler yapabilir"], "weight": 0.9},
        {"keywords": ["kullanım", "usage", "guide"], "weight": 0.8},
    ],
    "thanks": [
        {"keywords": ["teşekkür", "thank", "sağol"], "weight": 1.0},
        {"keywords": ["teşekkürler", "thanks", "merci"], "weight": 0.9},
    ],
}

CLARIFICATION_INTENT = "clarification_needed"

# Entity key -> bonus added to every intent that already scored on keywords.
CONTEXT_BONUSES: Dict[str, float] = {
    "university": 0.2,
    "department": 0.2,
    "scoreType": 0.15,
    "targetScore": 0.1,
}

# (entity keys that must all be present, inferred intent) tried in order
# when no keyword matched.
ENTITY_INFERENCES: List[Tuple[Tuple[str, ...], str]] = [
    (("university", "department"), "net_calculation"),
    (("university",), "department_search"),
]

QUESTION_WORDS: List[str] = [
    "ne", "nedir", "nasıl", "neden", "niçin", "kim", "kime", "kimi",
    "hangi", "hangisi", "kaç", "kaçta", "nerede", "nereden", "nereye",
    "ne zaman", "when", "what", "how", "why", "who", "which", "where",
]

# Minimum confidence below which a classification is not trusted unless
# the listed entities are present.
VALIDATION_RULES: Dict[str, Tuple[float, Tuple[str, ...]]] = {
    "net_calculation": (0.5, ("university", "department")),
    "base_score": (0.4, ("university",)),
    "quota_inquiry": (0.4, ("university",)),
    "department_search": (0.4, ()),
}
DEFAULT_MIN_CONFIDENCE = 0.3


# ---------------------------------------------------------------------------
# Conversation context
# ---------------------------------------------------------------------------

# Every intent the classifier can emit must have a row here.
REQUIRED_ENTITIES: Dict[str, List[str]] = {
    "tyt_calculation": [],
    "ayt_calculation": [],
    "study_advice": [],
    "net_calculation": ["university", "department", "scoreType"],
    "base_score": ["university", "department"],
    "quota_inquiry": ["university", "department"],
    "department_search": ["university"],
    "greeting": [],
    "help": [],
    "thanks": [],
    "clarification_needed": [],
}

CLARIFICATION_QUESTIONS: Dict[str, Dict[str, str]] = {
    "net_calculation": {
        "university": "Hangi üniversiteyi merak ediyorsunuz?",
        "department": "Hangi bölüm için net hesaplama yapmak istiyorsunuz?",
        "scoreType": "Hangi puan türü için hesaplama yapmalıyım? (SAY, EA, SÖZ, DIL)",
    },
    "base_score": {
        "university": "Hangi üniversitenin taban puanını öğrenmek istiyorsunuz?",
        "department": "Hangi bölümün taban puanını merak ediyorsunuz?",
    },
    "quota_inquiry": {
        "university": "Hangi üniversitenin kontenjan bilgilerini istiyorsunuz?",
        "department": "Hangi bölümün kontenjan bilgilerini merak ediyorsunuz?",
    },
    "department_search": {
        "university": "Hangi üniversitenin bölümlerini görmek istiyorsunuz?",
    },
}

# Used when the intent has no row for the missing entity.
GENERIC_ENTITY_QUESTIONS: Dict[str, str] = {
    "university": "Hangi üniversiteyi merak ediyorsunuz?",
    "department": "Hangi bölüm hakkında bilgi almak istiyorsunuz?",
    "scoreType": "Hangi puan türü için bilgi istiyorsunuz?",
    "language": "Türkçe mi İngilizce mi öğretim dili tercih ediyorsunuz?",
}

CONFUSION_LEXICON: List[str] = [
    "anlamadım", "ne demek", "nasıl", "bilmiyorum", "emin değilim",
    "karışık", "zorlaştı", "help", "yardım",
]


# ---------------------------------------------------------------------------
# Follow-up suggestions
# ---------------------------------------------------------------------------

# A template is offered only when every key in "requires" is present; the
# text is formatted with the accumulated entities and "carry" lists the
# entities handed on to the suggested intent.
FOLLOW_UP_TEMPLATES: Dict[str, List[Dict[str, Any]]] = {
    "net_calculation": [
        {
            "kind": "question",
            "text": "{department} bölümünün taban puanını da merak ediyor musunuz?",
            "intent": "base_score",
            "requires": ["university", "department"],
            "carry": ["university", "department"],
            "priority": 8,
        },
        {
            "kind": "question",
            "text": "{department} bölümünün kontenjanını öğrenmek ister misiniz?",
            "intent": "quota_inquiry",
            "requires": ["university", "department"],
            "carry": ["university", "department"],
            "priority": 7,
        },
        {
            "kind": "action",
            "text": "Başka bir bölüm için de hesaplama yapabilirsiniz",
            "intent": "net_calculation",
            "requires": ["university", "department"],
            "priority": 6,
        },
        {
            "kind": "question",
            "text": "{university}'nde başka hangi bölümler var?",
            "intent": "department_search",
            "requires": ["university"],
            "carry": ["university"],
            "priority": 5,
        },
    ],
    "base_score": [
        {
            "kind": "question",
            "text": "{department} için kaç net gerekli?",
            "intent": "net_calculation",
            "requires": ["university", "department"],
            "carry": ["university", "department"],
            "priority": 9,
        },
        {
            "kind": "question",
            "text": "{department} bölümünün kontenjanı kaç kişi?",
            "intent": "quota_inquiry",
            "requires": ["university", "department"],
            "carry": ["university", "department"],
            "priority": 7,
        },
        {
            "kind": "action",
            "text": "Başka bir bölümün taban puanını da sorgulayabilirsiniz",
            "intent": "base_score",
            "priority": 6,
        },
    ],
    "quota_inquiry": [
        {
            "kind": "question",
            "text": "{department} için net hesaplama yapalım mı?",
            "intent": "net_calculation",
            "requires": ["university", "department"],
            "carry": ["university", "department"],
            "priority": 8,
        },
        {
            "kind": "question",
            "text": "{department} bölümünün taban puanı nedir?",
            "intent": "base_score",
            "requires": ["university", "department"],
            "carry": ["university", "department"],
            "priority": 7,
        },
    ],
    "department_search": [
        {
            "kind": "action",
            "text": "İlginizi çeken bir bölüm için net hesaplama yapabiliriz",
            "intent": "net_calculation",
            "requires": ["university"],
            "carry": ["university"],
            "priority": 8,
        },
        {
            "kind": "action",
            "text": "Bölümlerin taban puanlarını karşılaştırabilirsiniz",
            "intent": "base_score",
            "requires": ["university"],
            "carry": ["university"],
            "priority": 7,
        },
    ],
}

# Offered for intents without their own template set.
GENERAL_FOLLOW_UPS: List[Dict[str, Any]] = [
    {
        "kind": "action",
        "text": "Net hesaplama yapmak için üniversite ve bölüm belirtin",
        "intent": "net_calculation",
        "priority": 6,
    },
    {
        "kind": "action",
        "text": "Taban puan sorgulamak için bölüm seçin",
        "intent": "base_score",
        "priority": 5,
    },
    {
        "kind": "action",
        "text": "Üniversite bölümlerini keşfedin",
        "intent": "department_search",
        "priority": 4,
    },
]

# Informational tips nudged by an entity value containing one of the
# keywords.
CONTEXTUAL_HINTS: List[Dict[str, Any]] = [
    {
        "entity": "department",
        "keywords": ["mühendislik", "mühendisliği", "bilgisayar", "elektrik", "makine", "endüstri", "inşaat"],
        "text": "Mühendislik bölümleri genellikle SAY puan türünden öğrenci alır",
        "priority": 4,
    },
    {
        "entity": "department",
        "keywords": ["hukuk", "işletme", "iktisat", "psikoloji", "sosyoloji", "siyaset"],
        "text": "Sosyal bilimler bölümleri EA veya SÖZ puan türünden öğrenci alır",
        "priority": 4,
    },
    {
        "entity": "language",
        "keywords": ["ingilizce"],
        "text": "İngilizce bölümler genellikle daha yüksek puan ister",
        "priority": 3,
    },
]

HELP_SUGGESTIONS: List[Dict[str, Any]] = [
    {
        "kind": "information",
        "text": "Size nasıl yardımcı olabilirim? İşte yapabileceklerim:",
        "priority": 10,
    },
    {
        "kind": "action",
        "text": "Net hesaplama yapmak için üniversite ve bölüm söyleyin",
        "intent": "net_calculation",
        "priority": 9,
    },
    {
        "kind": "action",
        "text": "Taban puan öğrenmek için bölüm seçin",
        "intent": "base_score",
        "priority": 8,
    },
    {
        "kind": "action",
        "text": "Kontenjan bilgisi için üniversite ve bölüm belirtin",
        "intent": "quota_inquiry",
        "priority": 7,
    },
]

FALLBACK_SUGGESTIONS: List[Dict[str, Any]] = [
    {"kind": "action", "text": "Yeni bir soru sorabilirsiniz", "priority": 5},
    {"kind": "information", "text": "Size nasıl yardımcı olabilirim?", "priority": 4},
]

# Example questions keyed by which anchor entities are already known.
INTENT_SUGGESTIONS: Dict[str, List[str]] = {
    "university_and_department": [
        "Bu bölüm için kaç net gerekli?",
        "Taban puanı nedir?",
        "Kontenjanı kaç kişi?",
    ],
    "university": [
        "Hangi bölümler var?",
        "En popüler bölümler neler?",
    ],
    "none": [
        "Hangi üniversiteyi merak ediyorsunuz?",
        "Net hesaplama nasıl yapılır?",
        "Taban puan sorgulama nasıl yapılır?",
    ],
}
