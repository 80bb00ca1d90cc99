"""
Colors API

Goal color patterns a category can use, with labels and a short preview.
"""

from fastapi import APIRouter

from app.libs.color_utils import PATTERN_INFO, get_pattern_preview

router = APIRouter(tags=["Colors"])


@router.get("/colors")
async def list_color_patterns():
    """Every color pattern with its label, description and first four gradients."""
    return {
        "success": True,
        "data": [
            {"pattern": pattern.value, **info, "preview": get_pattern_preview(pattern)}
            for pattern, info in PATTERN_INFO.items()
        ],
    }
