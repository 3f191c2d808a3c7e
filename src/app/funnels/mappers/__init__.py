"""Direct mappers -- one pure function per content family.

Each mapper takes one section's merged content and returns a MapperResult
({key: value} plus warnings). None of them raises on malformed input.
"""

from src.app.funnels.mappers.appointment_reminders import map_appointment_reminders
from src.app.funnels.mappers.brand import (
    ColorPalette,
    extract_color_scheme,
    map_brand_colors,
    map_generated_images,
)
from src.app.funnels.mappers.email import map_emails
from src.app.funnels.mappers.funnel_copy import map_company_info, map_funnel_copy, map_media
from src.app.funnels.mappers.sms import map_sms

__all__ = [
    "ColorPalette",
    "extract_color_scheme",
    "map_appointment_reminders",
    "map_brand_colors",
    "map_company_info",
    "map_emails",
    "map_funnel_copy",
    "map_generated_images",
    "map_media",
    "map_sms",
]
