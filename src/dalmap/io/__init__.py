from .file_loader import FileLoader
from .loader_factory import LoaderFactory
from .plan_writer import PlanWriter

__all__ = ["FileLoader", "LoaderFactory", "PlanWriter"]
