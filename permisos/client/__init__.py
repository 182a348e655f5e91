from .api import ApiError, CrmApi, MissingCredential
from .matrix import CATEGORY_LABELS, MatrixTable, ModuloRow, group_modules
from .session import MatrixSession, PropagationNotAllowed, can_propagate

__all__ = [
    "ApiError",
    "CrmApi",
    "MissingCredential",
    "CATEGORY_LABELS",
    "MatrixTable",
    "ModuloRow",
    "group_modules",
    "MatrixSession",
    "PropagationNotAllowed",
    "can_propagate",
]
