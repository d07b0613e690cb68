"""
User-facing messages shown by the front-end, keyed by locale.

The default locale is Arabic (`ar`); `en` is the fallback for any missing
locale or key.
"""
from enum import Enum
from typing import Dict

DEFAULT_LOCALE = "en"


class MessageKey(str, Enum):
    GENERIC_FAILURE = "generic_failure"
    INVALID_API_KEY = "invalid_api_key"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    PERMISSION_DENIED = "permission_denied"
    RATE_LIMITED = "rate_limited"
    MODEL_UNAVAILABLE = "model_unavailable"
    MODEL_UNAVAILABLE_NAMED = "model_unavailable_named"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    NO_CANDIDATES = "no_candidates"
    FALLBACK_TEXT = "fallback_text"
    CONFIGURATION_HINT = "configuration_hint"
    MISSING_CONTENTS = "missing_contents"
    INVALID_BODY = "invalid_body"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    UNSUPPORTED_ROLE = "unsupported_role"


MESSAGES: Dict[str, Dict[MessageKey, str]] = {
    "en": {
        MessageKey.GENERIC_FAILURE: "{provider} API failed to respond. Please try again later.",
        MessageKey.INVALID_API_KEY: "Invalid API key for {provider}. Please check the server configuration.",
        MessageKey.INSUFFICIENT_BALANCE: "The {provider} account has insufficient balance.",
        MessageKey.PERMISSION_DENIED: "Access to {provider} was denied. Please check the API key permissions.",
        MessageKey.RATE_LIMITED: "Rate limit exceeded, please wait a moment and try again.",
        MessageKey.MODEL_UNAVAILABLE: "The requested model is unavailable.",
        MessageKey.MODEL_UNAVAILABLE_NAMED: "The requested model '{model}' is unavailable.",
        MessageKey.PROVIDER_UNAVAILABLE: "Internal Server Error: could not reach the AI service.",
        MessageKey.NO_CANDIDATES: "The AI service returned no answer for this request.",
        MessageKey.FALLBACK_TEXT: "Could not understand the question; please rephrase it or attach a clearer image.",
        MessageKey.CONFIGURATION_HINT: "{env_name} is not configured in the server environment variables.",
        MessageKey.MISSING_CONTENTS: "Missing chat contents in request body.",
        MessageKey.INVALID_BODY: "Invalid request body.",
        MessageKey.METHOD_NOT_ALLOWED: "Method {method} Not Allowed",
        MessageKey.UNSUPPORTED_ROLE: "Unsupported message role '{role}'.",
    },
    "ar": {
        MessageKey.GENERIC_FAILURE: "فشل الاتصال بخدمة {provider}. يرجى المحاولة لاحقاً.",
        MessageKey.INVALID_API_KEY: "مفتاح API غير صالح لخدمة {provider}. يرجى التحقق من إعدادات الخادم.",
        MessageKey.INSUFFICIENT_BALANCE: "رصيد حساب {provider} غير كافٍ.",
        MessageKey.PERMISSION_DENIED: "تم رفض الوصول إلى {provider}. يرجى التحقق من صلاحيات مفتاح API.",
        MessageKey.RATE_LIMITED: "تم تجاوز حد الطلبات، يرجى الانتظار قليلاً ثم المحاولة مرة أخرى.",
        MessageKey.MODEL_UNAVAILABLE: "النموذج المطلوب غير متاح.",
        MessageKey.MODEL_UNAVAILABLE_NAMED: "النموذج المطلوب '{model}' غير متاح.",
        MessageKey.PROVIDER_UNAVAILABLE: "خطأ داخلي في الخادم: تعذر الوصول إلى خدمة الذكاء الاصطناعي.",
        MessageKey.NO_CANDIDATES: "لم تُرجع خدمة الذكاء الاصطناعي أي إجابة لهذا الطلب.",
        MessageKey.FALLBACK_TEXT: "لم أتمكن من فهم السؤال، يرجى إعادة صياغته أو إرفاق صورة أوضح.",
        MessageKey.CONFIGURATION_HINT: "لم يتم ضبط {env_name} في متغيرات البيئة على الخادم.",
        MessageKey.MISSING_CONTENTS: "محتوى المحادثة مفقود في جسم الطلب (Missing chat contents).",
        MessageKey.INVALID_BODY: "جسم الطلب غير صالح.",
        MessageKey.METHOD_NOT_ALLOWED: "الطريقة {method} غير مسموح بها",
        MessageKey.UNSUPPORTED_ROLE: "دور الرسالة '{role}' غير مدعوم.",
    },
}


class _FormatArgs(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def get_message(key: MessageKey, locale: str = DEFAULT_LOCALE, **fmt: str) -> str:
    catalog = MESSAGES.get((locale or DEFAULT_LOCALE).lower(), MESSAGES[DEFAULT_LOCALE])
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE][key]
    return template.format_map(_FormatArgs(fmt))
