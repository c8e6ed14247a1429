from pydantic import BaseModel
from typing import Dict, Optional


class LanguageInfo(BaseModel):
    name: str
    nativename: str
    direction: str = "ltr"
    completion: int = 100
    parent: Optional[str] = None


class LocalesResponse(BaseModel):
    current: str
    default: str
    locales: Dict[str, LanguageInfo]


class TranslationExport(BaseModel):
    locale: str
    direction: str
    translations: Dict[str, str]

