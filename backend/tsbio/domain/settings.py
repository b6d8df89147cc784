"""
App Settings Domain Models

app_settings is a key/value table. The home page hero banner is stored as
one row per field under the home.hero.* keys.
"""
from typing import Optional

from pydantic import BaseModel

# Banner payload field -> app_settings key
BANNER_KEYS = {
    "heroImageUrl": "home.hero.image_url",
    "headlineTop": "home.hero.headline_top",
    "headlineMid": "home.hero.headline_mid",
    "headlineBottom": "home.hero.headline_bottom",
    "ctaSupportLabel": "home.hero.cta_support_label",
    "searchPlaceholder": "home.hero.search_placeholder",
    "diagnoseButtonLabel": "home.hero.diagnose_button_label",
}

# Hero field -> keys to try, newest naming first (older releases used camelCase keys)
HERO_KEY_FALLBACKS = {
    "headlineTop": ("home.hero.headline_top", "home.hero.headlineTop", "home.hero.line1"),
    "headlineMid": ("home.hero.headline_mid", "home.hero.headlineMid", "home.hero.line2"),
    "headlineBottom": ("home.hero.headline_bottom", "home.hero.headlineBottom", "home.hero.line3"),
    "heroImageUrl": ("home.hero.image_url", "home.hero.heroImageUrl"),
    "ctaSupportLabel": ("home.hero.cta_support_label", "home.hero.ctaSupportLabel"),
    "ctaSupportHref": ("home.hero.cta_support_href", "home.hero.ctaSupportHref"),
    "searchPlaceholder": ("home.hero.search_placeholder", "home.hero.searchPlaceholder"),
    "diagnoseButtonLabel": ("home.hero.diagnose_button_label", "home.hero.diagnoseButtonLabel"),
}


class HomeHeroSettings(BaseModel):
    headlineTop: str = "TSBIO - ĐỒNG HÀNH CỨU VƯỜN"
    headlineMid: Optional[str] = "HƠN 10.000 NHÀ VƯỜN"
    headlineBottom: str = "PHỤC HỒI VƯỜN THÀNH CÔNG"
    heroImageUrl: Optional[str] = "/tsbio-harvest-hero.jpg"
    ctaSupportLabel: Optional[str] = "HỖ TRỢ KỸ THUẬT CHUYÊN SÂU"
    ctaSupportHref: Optional[str] = "/cuu-vuon"
    searchPlaceholder: Optional[str] = "Vườn bạn đang gặp vấn đề gì?"
    diagnoseButtonLabel: Optional[str] = "CHẨN ĐOÁN\nNGAY"


class BannerSettings(BaseModel):
    """Banner as the admin editor sees it (unset keys are "")"""
    heroImageUrl: str = ""
    headlineTop: str = ""
    headlineMid: str = ""
    headlineBottom: str = ""
    ctaSupportLabel: str = ""
    searchPlaceholder: str = ""
    diagnoseButtonLabel: str = ""


class BannerPayload(BaseModel):
    """PUT body; only fields present in the request are written"""
    heroImageUrl: Optional[str] = None
    headlineTop: Optional[str] = None
    headlineMid: Optional[str] = None
    headlineBottom: Optional[str] = None
    ctaSupportLabel: Optional[str] = None
    searchPlaceholder: Optional[str] = None
    diagnoseButtonLabel: Optional[str] = None

    def provided_values(self) -> dict:
        """app_settings key -> trimmed value, for provided fields only"""
        provided = self.model_dump(exclude_unset=True)
        return {
            BANNER_KEYS[field]: str(value if value is not None else "").strip()
            for field, value in provided.items()
            if field in BANNER_KEYS
        }
