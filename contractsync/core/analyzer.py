"""
Consistency analysis: not-null annotations without contract statements
"""

import logging
from typing import List, Optional

import libcst as cst

from ..queries import resolver, syntax
from .config import ContractSettings
from .document import Document
from .models import ContractKind, Finding, SubjectKind

logger = logging.getLogger(__name__)


def find_invariant_method(document: Document, cls: cst.ClassDef) -> Optional[cst.FunctionDef]:
    """
    First method of the class marked as invariant method and taking only
    `self`. Later marked methods are ignored.
    """
    names = document.settings.invariant_method_names
    for statement in syntax.statements_of(cls.body):
        if not isinstance(statement, cst.FunctionDef):
            continue
        if syntax.find_decorator(document, statement.decorators, names) is None:
            continue
        if len(syntax.parameters_of(statement)) != 1:
            continue
        return statement
    return None


def has_requires(document: Document, member: cst.FunctionDef, param: cst.Param) -> bool:
    """
    True if the member's body holds a precondition for `param`, or a
    precondition whose shape is not recognized.
    """
    for call in syntax.contract_calls(document, syntax.statements_of(member.body),
                                      ContractKind.REQUIRES):
        subject = syntax.extract_subject(document, call, ContractKind.REQUIRES)
        if subject is None:
            return True
        if document.refers_to(subject, param):
            return True
    return False


def has_ensures(document: Document, member: cst.FunctionDef) -> bool:
    """Any postcondition counts: a member has a single result"""
    calls = syntax.contract_calls(document, syntax.statements_of(member.body),
                                  ContractKind.ENSURES)
    return next(calls, None) is not None


def has_invariant(document: Document, method: cst.FunctionDef, field_name: str) -> bool:
    """
    True if the invariant method asserts `self.<field_name>`, or holds an
    invariant whose shape is not recognized.
    """
    self_param = syntax.parameters_of(method)[0]
    for call in syntax.contract_calls(document, syntax.statements_of(method.body),
                                      ContractKind.INVARIANT):
        subject = syntax.extract_subject(document, call, ContractKind.INVARIANT)
        if subject is None:
            return True
        if subject.attr.value == field_name and document.refers_to(subject.value, self_param):
            return True
    return False


class ConsistencyAnalyzer(cst.CSTVisitor):
    """
    Single top-to-bottom pass collecting findings.

    Usage:
        findings = ConsistencyAnalyzer(document).analyze()
    """

    def __init__(self, document: Document):
        super().__init__()
        self.document = document
        self.findings: List[Finding] = []

    def analyze(self) -> List[Finding]:
        self.findings = []
        self.document.module.visit(self)
        self.findings.sort(key=lambda f: (f.span.start_line, f.span.start_column))
        return self.findings

    def _report(self, kind: SubjectKind, subject: str, member: str, location: cst.CSTNode,
                anchor: cst.CSTNode) -> None:
        finding = Finding(kind, subject, member, self.document.span(location), anchor)
        logger.debug("%s", finding)
        self.findings.append(finding)

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        document = self.document
        params = syntax.parameters_of(node)
        annotated = [
            (index, param) for index, param in enumerate(params)
            if syntax.is_not_null_annotated(document, param.annotation)
        ]
        returns_not_null = syntax.is_not_null_annotated(document, node.returns)
        if not annotated and not returns_not_null:
            return

        target = resolver.resolve_contract_target(document, node)
        if not target.fixable:
            return

        member = resolver.member_name(document, node)
        target_params = syntax.parameters_of(target.member)

        for index, param in annotated:
            target_param = target_params[index]
            if not has_requires(document, target.member, target_param):
                self._report(SubjectKind.PARAMETER, param.name.value, member,
                             param.annotation.annotation, param)

        if returns_not_null and not has_ensures(document, target.member):
            self._report(SubjectKind.RETURN, node.name.value, member,
                         node.returns.annotation, node)

    def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
        document = self.document
        if not isinstance(node.target, cst.Name):
            return
        if not syntax.is_not_null_annotated(document, node.annotation):
            return

        cls = resolver.field_owner(document, node)
        if cls is None:
            return

        method = find_invariant_method(document, cls)
        if method is None:
            return

        if not has_invariant(document, method, node.target.value):
            self._report(SubjectKind.FIELD, node.target.value, cls.name.value,
                         node.target, node)


def analyze(document: Document) -> List[Finding]:
    """Findings of one document in declaration order"""
    return ConsistencyAnalyzer(document).analyze()


def analyze_source(source: str, settings: Optional[ContractSettings] = None) -> List[Finding]:
    """
    Parse and analyze Python source.

    Raises:
        ValueError: If the source is not valid Python
    """
    return analyze(Document.from_source(source, settings))
