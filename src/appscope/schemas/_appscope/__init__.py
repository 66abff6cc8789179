from .appscope_model import _AppScopeModel

__all__ = ["_AppScopeModel"]
