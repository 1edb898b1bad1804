"""
Contract-class resolution.

An interface or abstract class names its contract class with
`@contract_class("Companion")`; the companion names it back with
`@contract_class_for(Interface)`. Members without a body of their own
carry their contract statements on the companion's implementing member.
"""

import logging
from typing import List, Optional

import libcst as cst

from ..core.document import Document
from ..core.models import UNFIXABLE, ContractTarget, TargetKind
from . import syntax

logger = logging.getLogger(__name__)


def declaring_class(document: Document, member: cst.FunctionDef) -> Optional[cst.ClassDef]:
    """Class whose body directly declares `member`"""
    block = document.parent(member)
    owner = document.parent(block) if block is not None else None
    return owner if isinstance(owner, cst.ClassDef) else None


def field_owner(document: Document, field: cst.AnnAssign) -> Optional[cst.ClassDef]:
    """Class whose body directly declares the annotated field"""
    line = document.parent(field)
    block = document.parent(line) if line is not None else None
    owner = document.parent(block) if block is not None else None
    return owner if isinstance(owner, cst.ClassDef) else None


def member_name(document: Document, member: cst.FunctionDef) -> str:
    """`Class.method` for methods, the bare name otherwise"""
    owner = declaring_class(document, member)
    if owner is None:
        return member.name.value
    return f"{owner.name.value}.{member.name.value}"


def _is_protocol(document: Document, cls: cst.ClassDef) -> bool:
    protocol_names = document.settings.protocol_names
    for base in cls.bases:
        value = base.value
        if isinstance(value, cst.Subscript):
            value = value.value
        if document.resolves_to(value, protocol_names):
            return True
    return False


def has_body(document: Document, member: cst.FunctionDef) -> bool:
    """
    False for stubs: a stub body on an `@abstractmethod` or `@overload`, on
    a Protocol member, or on a member of a class that has a contract class.
    """
    if not syntax.is_stub_body(member.body):
        return True

    settings = document.settings
    if syntax.find_decorator(document, member.decorators, settings.abstract_method_names):
        return False
    if syntax.find_decorator(document, member.decorators, settings.overload_names):
        return False

    owner = declaring_class(document, member)
    if owner is None:
        return True
    if _is_protocol(document, owner):
        return False
    if syntax.find_decorator(document, owner.decorators, settings.contract_class_names):
        return False
    return True


def _classes_named(document: Document, name: str) -> List[cst.ClassDef]:
    found: List[cst.ClassDef] = []

    class _Collector(cst.CSTVisitor):
        def visit_ClassDef(self, node: cst.ClassDef) -> None:
            if node.name.value == name:
                found.append(node)

    document.module.visit(_Collector())
    return found


def get_contract_class(document: Document, member: cst.FunctionDef) -> Optional[cst.ClassDef]:
    """
    The companion class of the member's declaring class.

    Both markers must agree: the declaring class names the companion and
    the companion names the declaring class back.
    """
    owner = declaring_class(document, member)
    if owner is None:
        return None

    settings = document.settings
    marker = syntax.find_decorator(document, owner.decorators, settings.contract_class_names)
    if marker is None:
        return None

    companion_name = syntax.decorator_argument(marker)
    if companion_name is None:
        return None

    for candidate in _classes_named(document, companion_name):
        back = syntax.find_decorator(document, candidate.decorators,
                                     settings.contract_class_for_names)
        if back is not None and syntax.decorator_argument(back) == owner.name.value:
            return candidate

    logger.debug("No contract class '%s' naming back %s", companion_name, owner.name.value)
    return None


def _parameter_type(document: Document, param: cst.Param) -> Optional[str]:
    if param.annotation is None:
        return None
    inner = syntax.not_null_inner_type(document, param.annotation)
    node = inner if inner is not None else param.annotation.annotation
    return document.code_for(node)


def _signatures_match(document: Document, source: cst.FunctionDef,
                      candidate: cst.FunctionDef) -> bool:
    source_params = syntax.parameters_of(source)
    candidate_params = syntax.parameters_of(candidate)
    if len(source_params) != len(candidate_params):
        return False

    # Unannotated parameters on either side match any type
    for ours, theirs in zip(source_params, candidate_params):
        ours_type = _parameter_type(document, ours)
        theirs_type = _parameter_type(document, theirs)
        if ours_type is not None and theirs_type is not None and ours_type != theirs_type:
            return False
    return True


def find_implementing_member(document: Document, companion: cst.ClassDef,
                             member: cst.FunctionDef) -> Optional[cst.FunctionDef]:
    """
    Member of the companion with the same name and parameter types as
    `member`. None if there is none or it has no body.
    """
    for statement in syntax.statements_of(companion.body):
        if not isinstance(statement, cst.FunctionDef):
            continue
        if statement.name.value != member.name.value:
            continue
        if not _signatures_match(document, member, statement):
            continue
        if not has_body(document, statement):
            return None
        return statement
    return None


def resolve_contract_target(document: Document, member: cst.FunctionDef) -> ContractTarget:
    """
    Where the contract statements of `member` live: the member itself, the
    implementing member of its contract class, or nowhere.
    """
    if has_body(document, member):
        return ContractTarget(TargetKind.SELF, member)

    companion = get_contract_class(document, member)
    if companion is None:
        logger.debug("%s has no body and no contract class", member_name(document, member))
        return UNFIXABLE

    implementing = find_implementing_member(document, companion, member)
    if implementing is None:
        logger.debug("Contract class %s does not implement %s",
                     companion.name.value, member.name.value)
        return UNFIXABLE

    return ContractTarget(TargetKind.REDIRECT, implementing)
