"""Input/Output modules for different file formats."""

from .io_excel import ExcelExporter
from .io_csv import CSVImporter, CSVExporter
from .io_json import JSONImporter, JSONExporter, dumps_model, loads_model
from .io_yaml import YAMLImporter

__all__ = [
    'ExcelExporter',
    'CSVImporter', 'CSVExporter',
    'JSONImporter', 'JSONExporter', 'dumps_model', 'loads_model',
    'YAMLImporter',
]
