"""
Selectable values shared by profile editing and search filters, plus the field
lists the profile engine diffs and validates over.

Profile values and search filters must use exactly these strings so that a
filter matches a stored profile.
"""

from __future__ import annotations

GENDERS: tuple[str, ...] = ("male", "female")

RELIGIONS: tuple[str, ...] = ("الإسلام", "المسيحية", "أخرى")

EDUCATION_LEVELS: tuple[str, ...] = (
    "غير متعلم",
    "ابتدائي",
    "متوسط",
    "ثانوي",
    "دبلوم",
    "بكالوريوس",
    "ماجستير",
    "دكتوراه",
)

OCCUPATIONS: tuple[str, ...] = (
    "طبيب",
    "ممرضة",
    "مهندس",
    "معلم",
    "مهندس برمجيات",
    "محاسب",
    "محامي",
    "مهندس مدني",
    "مهندس معماري",
    "مهندس كهرباء",
    "محاضر جامعي",
    "مدير مشاريع",
    "رائد أعمال",
    "ربة منزل",
    "طالب",
    "موظف حكومي",
    "موظف قطاع خاص",
    "أعمال حرة",
    "أخرى",
)

# Shown to male users searching for females.
FEMALE_MARITAL_STATUSES: tuple[str, ...] = (
    "عزباء",
    "مطلقة",
    "أرملة",
    "مطلق - بدون أولاد",
    "مطلق - مع أولاد",
    "منفصل بدون طلاق",
    "أرمل - بدون أولاد",
    "أرمل - مع أولاد",
)

# Shown to female users searching for males.
MALE_MARITAL_STATUSES: tuple[str, ...] = (
    "أعزب",
    "مطلق",
    "أرمل",
    "مطلق - بدون أولاد",
    "مطلق - مع أولاد",
    "منفصل بدون طلاق",
    "أرمل - بدون أولاد",
    "أرمل - مع أولاد",
)

# Profile editing: the user picks their own status from the full list.
ALL_MARITAL_STATUSES: tuple[str, ...] = (
    "عزباء",
    "أعزب",
    "مطلقة",
    "مطلق",
    "أرملة",
    "أرمل",
    "مطلق - بدون أولاد",
    "مطلق - مع أولاد",
    "منفصل بدون طلاق",
    "أرمل - بدون أولاد",
    "أرمل - مع أولاد",
)

RELIGIOSITY_LEVELS: tuple[str, ...] = ("منخفض", "متوسط", "ملتزم", "ملتزم جدا")

MARRIAGE_TYPES: tuple[str, ...] = ("زواج تقليدي", "زواج بشروط خاصة")

POLYGAMY_OPTIONS: tuple[str, ...] = ("اقبل بالتعدد", "لا اقبل بالتعدد", "حسب الظروف")

COMPATIBILITY_OPTIONS: tuple[str, ...] = ("نعم", "لا")

# Order matters: update payloads are built by walking this list.
SYNCABLE_PROFILE_FIELDS: tuple[str, ...] = (
    "firstName",
    "lastName",
    "gender",
    "dateOfBirth",
    "nationality",
    "city",
    "countryOfResidence",
    "education",
    "occupation",
    "religiosityLevel",
    "religion",
    "maritalStatus",
    "marriageType",
    "polygamyAcceptance",
    "compatibilityTest",
    "about",
    "guardianName",
    "guardianContact",
)

# Mirrors the backend's create-profile DTO.
MANDATORY_PROFILE_FIELDS: tuple[str, ...] = (
    "gender",
    "dateOfBirth",
    "city",
    "nationality",
    "maritalStatus",
    "education",
    "occupation",
    "religiosityLevel",
)

ABOUT_MIN_LENGTH = 2


def get_marital_statuses_for_search(user_gender: str | None) -> tuple[str, ...]:
    """
    Marital statuses to offer as search filters for the signed-in user.

    A male user searches for females and sees the female statuses, and vice
    versa. Unknown gender (profile not loaded yet) yields no options.
    """
    if user_gender == "male":
        return FEMALE_MARITAL_STATUSES
    if user_gender == "female":
        return MALE_MARITAL_STATUSES
    return ()


def get_search_target_gender(user_gender: str | None) -> str | None:
    """Gender to search for, given the signed-in user's own gender."""
    if user_gender == "male":
        return "female"
    if user_gender == "female":
        return "male"
    return None
