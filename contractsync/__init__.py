"""
contractsync: keep contract statements in sync with NotNull annotations
"""

from . import contract
from .annotations import NotNull
from .decorators import contract_class, contract_class_for, contract_invariant_method
from .core.config import ContractSettings
from .core.document import Document
from .core.models import Finding, SourceSpan, SubjectKind
from .core.analyzer import analyze, analyze_source
from .core.synthesizer import add_contract, fix_all, fix_at

__version__ = "0.1.0"
__all__ = [
    "NotNull",
    "contract",
    "contract_class",
    "contract_class_for",
    "contract_invariant_method",
    "ContractSettings",
    "Document",
    "Finding",
    "SourceSpan",
    "SubjectKind",
    "analyze",
    "analyze_source",
    "add_contract",
    "fix_all",
    "fix_at",
]
