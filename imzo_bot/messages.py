"""
User-facing texts

Все тексты бота в одном месте (узбекский, как в продукте).
"""

START_PROMPT = "Assalomu alaykum! Telefon raqamingizni yuboring (masalan: +998901234567):"
PASSWORD_PROMPT = "Parolni yuboring:"
LOGIN_SUCCESS = "✅ Muvaffaqiyatli! Endi savolingizni yuboring."
LOGIN_FAILED = "Login xato: {error}\nQayta urinib ko'ring: /start"
LOGIN_REQUIRED = "Avval /start orqali login qiling."

REJECTION_DEFAULT = "Uzr, savolingizni tushunmadim. Qayta yuboring."
REJECTION_SUFFIX = "\n\n*Yangi savolingizni yuboring.*"

SERVICE_UNAVAILABLE = "Xatolik yuz berdi. Iltimos, birozdan so'ng qayta urinib ko'ring."


def login_failed(error: str) -> str:
    return LOGIN_FAILED.format(error=error)


def rejection(message: str) -> str:
    text = (message or "").strip() or REJECTION_DEFAULT
    return text + REJECTION_SUFFIX
