from .base_engine import EngineFactory, ImageEngine
from .catalog import ModelCatalog
from .runware import RunwareEngine

__all__ = ["ModelCatalog", "ImageEngine", "EngineFactory", "RunwareEngine"]
