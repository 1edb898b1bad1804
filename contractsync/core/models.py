"""
Data models for annotated subjects, findings and contract targets
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import libcst as cst


class SubjectKind(str, Enum):
    """What a not-null annotation is attached to"""
    PARAMETER = "parameter"
    RETURN = "return"
    FIELD = "field"


class ContractKind(str, Enum):
    """Recognized contract statement kinds"""
    REQUIRES = "requires"
    ENSURES = "ensures"
    INVARIANT = "invariant"


class TargetKind(str, Enum):
    SELF = "self"
    REDIRECT = "redirect"
    UNFIXABLE = "unfixable"


@dataclass(frozen=True)
class SourceSpan:
    """Lines are 1-based, columns 0-based"""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def contains(self, line: int, column: int) -> bool:
        if (line, column) < (self.start_line, self.start_column):
            return False
        return (line, column) <= (self.end_line, self.end_column)

    def to_dict(self) -> Dict[str, int]:
        return {
            "start_line": self.start_line,
            "start_column": self.start_column,
            "end_line": self.end_line,
            "end_column": self.end_column
        }


@dataclass(frozen=True)
class Finding:
    """A not-null annotation without its contract statement"""
    kind: SubjectKind
    subject: str
    member: str
    span: SourceSpan
    anchor: cst.CSTNode = field(compare=False, repr=False)

    @property
    def key(self) -> tuple:
        """Identity that survives re-parsing (positions shift after a fix)"""
        return (self.kind, self.member, self.subject)

    @property
    def message(self) -> str:
        if self.kind is SubjectKind.PARAMETER:
            return f"Missing precondition for [NotNull] parameter '{self.subject}'"
        if self.kind is SubjectKind.RETURN:
            return f"Missing postcondition for [NotNull] result of '{self.subject}'"
        return f"Missing invariant for [NotNull] field '{self.subject}'"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "subject": self.subject,
            "member": self.member,
            "message": self.message,
            "span": self.span.to_dict()
        }


@dataclass(frozen=True)
class ContractTarget:
    """
    Member whose body carries the contract statements of an annotated member.

    SELF: the annotated member itself. REDIRECT: the implementing member on
    the companion contract class. UNFIXABLE: nowhere to place a statement.
    """
    kind: TargetKind
    member: Optional[cst.FunctionDef] = None

    @property
    def fixable(self) -> bool:
        return self.kind is not TargetKind.UNFIXABLE


UNFIXABLE = ContractTarget(TargetKind.UNFIXABLE)
