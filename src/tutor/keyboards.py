from __future__ import annotations
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder
from .i18n import t

EXAM_MORE = "exam_more"

def kb_exam_more(ui_lang: str) -> InlineKeyboardMarkup:
    b = InlineKeyboardBuilder()
    b.button(text="➕ " + t("exam_more", ui_lang), callback_data=EXAM_MORE)
    b.adjust(1)
    return b.as_markup()

def kb_lang() -> InlineKeyboardMarkup:
    b = InlineKeyboardBuilder()
    b.button(text="Українська", callback_data="lang:uk")
    b.button(text="English", callback_data="lang:en")
    b.adjust(2)
    return b.as_markup()
