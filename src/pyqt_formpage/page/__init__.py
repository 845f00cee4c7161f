"""
Page runtime: context, data loading, button pipeline and the engine tying
them together.
"""

from .page_context import PageContext, PageStatus
from .data_loader import DataLoader
from .button_action_pipeline import ButtonActionPipeline, ButtonActionService, ButtonClick, ClickState
from .form_page_engine import FormPageEngine

__all__ = [
    "PageContext",
    "PageStatus",
    "DataLoader",
    "ButtonActionPipeline",
    "ButtonActionService",
    "ButtonClick",
    "ClickState",
    "FormPageEngine",
]
