"""
Contract synthesis: insert the contract statement a finding is missing.

Each transform takes a document and returns a new module; the document's
tree is never modified. When nothing can be inserted the document's own
module object is returned unchanged.
"""

import logging
from typing import List, Optional, Sequence, cast

import libcst as cst
from libcst.metadata import ClassScope, GlobalScope, Scope

from ..queries import resolver, syntax
from .analyzer import analyze, find_invariant_method, has_ensures, has_invariant, has_requires
from .document import Document
from .models import ContractKind, Finding

logger = logging.getLogger(__name__)


def _shadowed(scope: Optional[Scope], name: str) -> bool:
    """True if a scope between `scope` and the module scope binds `name`"""
    while scope is not None and not isinstance(scope, GlobalScope):
        # Class bodies are not visible from their methods
        if not isinstance(scope, ClassScope) and scope.assignments[name]:
            return True
        scope = scope.parent
    return False


def _contract_alias(document: Document, member: cst.FunctionDef) -> str:
    """
    Name to call the contract API through inside `member`: an existing
    import the member can see, else a name free in the member's scope.
    """
    settings = document.settings
    scope = document.scope(member.body)
    for alias in syntax.contract_aliases(document.module, settings):
        if not _shadowed(scope, alias.split(".")[0]):
            return alias

    name = candidate = settings.contract_import_name
    suffix = 1
    while scope is not None and scope[candidate]:
        candidate = f"{name}_{suffix}"
        suffix += 1
    return candidate


def _insert_statement(document: Document, member: cst.FunctionDef, index: int,
                      text: str, alias: str) -> cst.Module:
    """
    Module with `text` inserted as statement `index` of the member's body,
    importing the contract API as `alias` if needed.
    """
    statement = cst.parse_statement(text + "\n")
    block = syntax.expand_suite(member.body)
    body = list(block.body)
    body.insert(index, statement)
    module = cast(cst.Module, document.module.deep_replace(member.body, block.with_changes(body=body)))
    return syntax.with_contract_import(module, document.settings, alias)


def _index_of(node: cst.CSTNode, nodes: Sequence[cst.CSTNode]) -> Optional[int]:
    for index, candidate in enumerate(nodes):
        if candidate is node:
            return index
    return None


def requires_position(document: Document, member: cst.FunctionDef,
                      params_before: Sequence[cst.Param]) -> int:
    """
    Index after the leading preconditions that assert parameters declared
    before the target parameter. Unrecognized preconditions are passed over.
    """
    statements = syntax.statements_of(member.body)
    position = syntax.docstring_offset(statements)
    for statement in statements[position:]:
        call = syntax.call_of(statement)
        if not syntax.is_contract_call(document, call, ContractKind.REQUIRES):
            break
        subject = syntax.extract_subject(document, call, ContractKind.REQUIRES)
        if subject is not None and not any(document.refers_to(subject, p) for p in params_before):
            break
        position += 1
    return position


def ensures_position(document: Document, member: cst.FunctionDef) -> int:
    """Index right after the leading preconditions"""
    statements = syntax.statements_of(member.body)
    position = syntax.docstring_offset(statements)
    for statement in statements[position:]:
        if not syntax.is_contract_statement(document, statement, ContractKind.REQUIRES):
            break
        position += 1
    return position


def add_requires(document: Document, param: cst.Param) -> cst.Module:
    parameters = document.parent(param)
    function = document.parent(parameters) if parameters is not None else None
    if not isinstance(function, cst.FunctionDef):
        return document.module

    index = _index_of(param, syntax.parameters_of(function))
    if index is None:
        return document.module

    target = resolver.resolve_contract_target(document, function)
    if not target.fixable:
        return document.module

    member = target.member
    target_params = syntax.parameters_of(member)
    target_param = target_params[index]
    if has_requires(document, member, target_param):
        return document.module

    position = requires_position(document, member, target_params[:index])
    alias = _contract_alias(document, member)
    text = f"{alias}.requires({target_param.name.value} is not None)"
    return _insert_statement(document, member, position, text, alias)


def add_ensures(document: Document, function: cst.FunctionDef) -> cst.Module:
    return_type = syntax.not_null_inner_type(document, function.returns)
    if return_type is None:
        return document.module

    target = resolver.resolve_contract_target(document, function)
    if not target.fixable:
        return document.module

    member = target.member
    if has_ensures(document, member):
        return document.module

    position = ensures_position(document, member)
    alias = _contract_alias(document, member)
    type_text = document.code_for(return_type).strip()
    text = f"{alias}.ensures({alias}.result({type_text}) is not None)"
    return _insert_statement(document, member, position, text, alias)


def add_invariant(document: Document, field: cst.AnnAssign) -> cst.Module:
    if not isinstance(field.target, cst.Name):
        return document.module

    cls = resolver.field_owner(document, field)
    if cls is None:
        return document.module

    method = find_invariant_method(document, cls)
    if method is None:
        logger.debug("Class %s has no invariant method", cls.name.value)
        return document.module

    field_name = field.target.value
    if has_invariant(document, method, field_name):
        return document.module

    self_name = syntax.parameters_of(method)[0].name.value
    alias = _contract_alias(document, method)
    text = f"{alias}.invariant({self_name}.{field_name} is not None)"
    position = len(syntax.statements_of(method.body))
    return _insert_statement(document, method, position, text, alias)


def add_contract(document: Document, anchor: cst.CSTNode) -> cst.Module:
    """
    Insert the contract statement for one finding's anchor node.

    Args:
        document: Document the anchor belongs to
        anchor: A Param (precondition), FunctionDef (postcondition) or
            AnnAssign (invariant) of `document.module`

    Returns:
        The new module, with the contract API import added if it was
        missing, or `document.module` itself if nothing could be inserted
    """
    if not document.contains(anchor):
        logger.debug("Anchor %s is not part of the document", type(anchor).__name__)
        return document.module

    if isinstance(anchor, cst.Param):
        return add_requires(document, anchor)
    if isinstance(anchor, cst.FunctionDef):
        return add_ensures(document, anchor)
    if isinstance(anchor, cst.AnnAssign):
        return add_invariant(document, anchor)

    logger.debug("Unsupported anchor %s", type(anchor).__name__)
    return document.module


def apply_finding(document: Document, finding: Finding) -> cst.Module:
    return add_contract(document, finding.anchor)


def fix_at(document: Document, line: int, column: int) -> Optional[cst.Module]:
    """
    Fix the finding whose span contains the position.

    Returns:
        The new module, or None if no finding covers the position
    """
    for finding in analyze(document):
        if finding.span.contains(line, column):
            return apply_finding(document, finding)
    return None


def fix_all(document: Document) -> cst.Module:
    """
    Apply every finding of the document, one at a time.

    The tree is re-analyzed after each insertion so every insertion index is
    computed against the updated tree. Findings whose fix changes nothing
    are skipped.
    """
    skipped: set = set()
    current = document
    for _ in range(len(analyze(document))):
        pending: List[Finding] = [f for f in analyze(current) if f.key not in skipped]
        if not pending:
            break

        finding = pending[0]
        module = apply_finding(current, finding)
        if module is current.module:
            logger.debug("Fix for %s changed nothing, skipping", finding.key)
            skipped.add(finding.key)
            continue

        current = Document(module, current.settings)
    return current.module
