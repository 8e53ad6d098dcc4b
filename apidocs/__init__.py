# API Docs Generator: interactive API reference built from OpenAPI 3 / Swagger 2 documents.
#  Sidebar navigation, schema trees, five-language code samples and a try-it executor.

from .code_samples import CodeSampleRenderer
from .generator import DocumentationAssembler
from .navigation import NavigationModel, operation_id
from .schema_tree import SchemaTreeBuilder
from .yaml_parser import parse_yaml

__all__ = [
    "CodeSampleRenderer",
    "DocumentationAssembler",
    "NavigationModel",
    "SchemaTreeBuilder",
    "operation_id",
    "parse_yaml",
]
