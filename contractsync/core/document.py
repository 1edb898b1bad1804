"""
A parsed source document with its symbol information
"""

from typing import Any, Collection, Mapping, Optional

import libcst as cst
from libcst.metadata import (
    CodeRange,
    MetadataWrapper,
    ParentNodeProvider,
    PositionProvider,
    QualifiedName,
    QualifiedNameProvider,
    Scope,
    ScopeProvider,
)
from libcst.metadata.base_provider import LazyValue

from .config import ContractSettings, resolve_settings
from .models import SourceSpan


def _value(metadata: Mapping[cst.CSTNode, Any], node: cst.CSTNode, default: Any = None) -> Any:
    """Metadata of a node; providers may store values computed on first access"""
    value = metadata.get(node, default)
    return value() if isinstance(value, LazyValue) else value


class Document:
    """
    Read-only view over one module and its resolved metadata.

    All node lookups must use nodes of `self.module`: the metadata wrapper
    works on its own copy of the tree passed in.
    """

    def __init__(self, module: cst.Module, settings: Optional[ContractSettings] = None):
        self._wrapper = MetadataWrapper(module)
        self.module = self._wrapper.module
        self.settings = resolve_settings(settings)
        self._positions = self._wrapper.resolve(PositionProvider)
        self._parents = self._wrapper.resolve(ParentNodeProvider)
        self._scopes = self._wrapper.resolve(ScopeProvider)
        self._qualified_names = self._wrapper.resolve(QualifiedNameProvider)

    @classmethod
    def from_source(cls, source: str, settings: Optional[ContractSettings] = None) -> "Document":
        """
        Parse Python source into a document.

        Raises:
            ValueError: If the source is not valid Python
        """
        try:
            module = cst.parse_module(source)
        except cst.ParserSyntaxError as e:
            raise ValueError(f"Invalid Python source: {e}") from e
        return cls(module, settings)

    @property
    def code(self) -> str:
        return self.module.code

    def contains(self, node: cst.CSTNode) -> bool:
        return node in self._parents or node is self.module

    def qualified_names(self, node: cst.CSTNode) -> Collection[QualifiedName]:
        return _value(self._qualified_names, node, ())

    def resolves_to(self, node: cst.CSTNode, names: Collection[str]) -> bool:
        """True if any qualified name of `node` is in `names`"""
        return any(q.name in names for q in self.qualified_names(node))

    def parent(self, node: cst.CSTNode) -> Optional[cst.CSTNode]:
        return _value(self._parents, node)

    def scope(self, node: cst.CSTNode) -> Optional[Scope]:
        return _value(self._scopes, node)

    def position(self, node: cst.CSTNode) -> CodeRange:
        return _value(self._positions, node)

    def span(self, node: cst.CSTNode) -> SourceSpan:
        code_range = self.position(node)
        return SourceSpan(
            start_line=code_range.start.line,
            start_column=code_range.start.column,
            end_line=code_range.end.line,
            end_column=code_range.end.column,
        )

    def code_for(self, node: cst.CSTNode) -> str:
        return self.module.code_for_node(node)

    def refers_to(self, name: cst.Name, declaration: cst.CSTNode) -> bool:
        """
        True if the name access resolves to the assignment made by
        `declaration` (a Param, or the Name it binds).
        """
        scope = self.scope(name)
        if scope is None:
            return False
        for access in scope.accesses[name]:
            if access.node is not name:
                continue
            for referent in access.referents:
                node = getattr(referent, "node", None)
                if node is declaration:
                    return True
                if isinstance(declaration, cst.Param) and node is declaration.name:
                    return True
        return False
