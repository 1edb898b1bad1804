"""
Queries over LibCST trees: not-null annotations, contract calls, imports.

Every query that names a marker or contract function matches by resolved
qualified name, so aliased imports are recognized and look-alike local
names are not.
"""

import logging
from typing import Iterator, List, Optional, Sequence

import libcst as cst
import libcst.matchers as m
from libcst.codemod import CodemodContext
from libcst.codemod.visitors import AddImportsVisitor
from libcst.helpers import get_full_name_for_node

from ..core.config import RESULT, ContractSettings, resolve_settings
from ..core.document import Document
from ..core.models import ContractKind

logger = logging.getLogger(__name__)

_DOCSTRING = m.SimpleStatementLine(
    body=[m.Expr(value=m.SimpleString() | m.ConcatenatedString())]
)


# ============================================================================
# Statements and suites
# ============================================================================

def statements_of(suite: cst.BaseSuite) -> List[cst.BaseStatement]:
    """
    Statements of a function body as a list of statement lines.

    A one-line suite yields one line per small statement. Inner nodes keep
    their identity, so metadata lookups still work on them.
    """
    if isinstance(suite, cst.IndentedBlock):
        return list(suite.body)
    return [cst.SimpleStatementLine(body=[small]) for small in suite.body]


def expand_suite(suite: cst.BaseSuite) -> cst.IndentedBlock:
    """Turn `def f(): return x` style suites into an indented block"""
    if isinstance(suite, cst.IndentedBlock):
        return suite
    lines = [
        cst.SimpleStatementLine(body=[small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)])
        for small in suite.body
    ]
    return cst.IndentedBlock(body=lines, header=suite.trailing_whitespace)


def is_docstring(statement: cst.CSTNode) -> bool:
    return m.matches(statement, _DOCSTRING)


def docstring_offset(statements: Sequence[cst.BaseStatement]) -> int:
    """1 if the body starts with a docstring, else 0"""
    return 1 if statements and is_docstring(statements[0]) else 0


def _is_stub_statement(small: cst.BaseSmallStatement) -> bool:
    if isinstance(small, cst.Pass):
        return True
    if isinstance(small, cst.Expr):
        return isinstance(small.value, (cst.Ellipsis, cst.SimpleString, cst.ConcatenatedString))
    if isinstance(small, cst.Raise) and small.exc is not None:
        exc = small.exc.func if isinstance(small.exc, cst.Call) else small.exc
        return m.matches(exc, m.Name("NotImplementedError"))
    return False


def is_stub_body(suite: cst.BaseSuite) -> bool:
    """
    True if the body holds nothing but a docstring, `...`, `pass` or
    `raise NotImplementedError`.
    """
    for statement in statements_of(suite):
        if not isinstance(statement, cst.SimpleStatementLine):
            return False
        if not all(_is_stub_statement(small) for small in statement.body):
            return False
    return True


def parameters_of(function: cst.FunctionDef) -> List[cst.Param]:
    """All parameters in declaration order"""
    params = function.params
    ordered = list(params.posonly_params) + list(params.params)
    if isinstance(params.star_arg, cst.Param):
        ordered.append(params.star_arg)
    ordered.extend(params.kwonly_params)
    if params.star_kwarg is not None:
        ordered.append(params.star_kwarg)
    return ordered


# ============================================================================
# Not-null annotations
# ============================================================================

def _is_not_null_marker(document: Document, node: cst.BaseExpression) -> bool:
    if isinstance(node, cst.Call):
        node = node.func
    return document.resolves_to(node, document.settings.not_null_names)


def _subscript_values(node: cst.Subscript) -> List[cst.BaseExpression]:
    return [
        element.slice.value
        for element in node.slice
        if isinstance(element.slice, cst.Index)
    ]


def not_null_inner_type(document: Document,
                        annotation: Optional[cst.Annotation]) -> Optional[cst.BaseExpression]:
    """
    The annotated type inside a not-null annotation.

    `NotNull[T]` and `Annotated[T, NotNull]` both give `T`; anything else
    gives None.
    """
    if annotation is None:
        return None

    node = annotation.annotation
    if not isinstance(node, cst.Subscript):
        return None

    values = _subscript_values(node)
    if not values:
        return None

    settings = document.settings
    if document.resolves_to(node.value, settings.not_null_names):
        return values[0]

    if document.resolves_to(node.value, settings.annotated_names):
        if any(_is_not_null_marker(document, meta) for meta in values[1:]):
            return values[0]

    return None


def is_not_null_annotated(document: Document, annotation: Optional[cst.Annotation]) -> bool:
    return not_null_inner_type(document, annotation) is not None


# ============================================================================
# Contract calls
# ============================================================================

def call_of(statement: cst.BaseStatement) -> Optional[cst.Call]:
    """The call of a single-expression statement line"""
    if not isinstance(statement, cst.SimpleStatementLine) or len(statement.body) != 1:
        return None
    small = statement.body[0]
    if isinstance(small, cst.Expr) and isinstance(small.value, cst.Call):
        return small.value
    return None


def is_contract_call(document: Document, expression: Optional[cst.BaseExpression],
                     kind: ContractKind) -> bool:
    """True if the expression calls the contract API function for `kind`"""
    if not isinstance(expression, cst.Call):
        return False
    name = document.settings.contract_function(kind.value)
    return document.resolves_to(expression.func, {name})


def is_contract_statement(document: Document, statement: cst.BaseStatement,
                          kind: ContractKind) -> bool:
    return is_contract_call(document, call_of(statement), kind)


def contract_calls(document: Document, statements: Sequence[cst.BaseStatement],
                   kind: ContractKind) -> Iterator[cst.Call]:
    for statement in statements:
        call = call_of(statement)
        if is_contract_call(document, call, kind):
            yield call


def _compared_to_none(expression: cst.BaseExpression) -> Optional[cst.BaseExpression]:
    """`x is not None`, `x != None` and mirrored forms give `x`"""
    if not isinstance(expression, cst.Comparison) or len(expression.comparisons) != 1:
        return None

    target = expression.comparisons[0]
    if not isinstance(target.operator, (cst.IsNot, cst.NotEqual)):
        return None

    left, right = expression.left, target.comparator
    if m.matches(right, m.Name("None")):
        return left
    if m.matches(left, m.Name("None")):
        return right
    return None


def _condition(call: cst.Call) -> Optional[cst.BaseExpression]:
    positional = [arg for arg in call.args if arg.keyword is None and not arg.star]
    if not positional:
        return None
    return positional[0].value


def extract_subject(document: Document, call: cst.Call,
                    kind: ContractKind) -> Optional[cst.BaseExpression]:
    """
    The expression a contract call asserts to be non-null.

    REQUIRES gives the compared Name, ENSURES the `contract.result(...)` call,
    INVARIANT the `self.<field>` Attribute. Any other argument shape gives
    None: the statement counts as present but unrecognized.
    """
    condition = _condition(call)
    if condition is None:
        return None

    operand = _compared_to_none(condition)
    if operand is None:
        return None

    if kind is ContractKind.REQUIRES:
        return operand if isinstance(operand, cst.Name) else None

    if kind is ContractKind.ENSURES:
        if isinstance(operand, cst.Call) and document.resolves_to(
                operand.func, {document.settings.contract_function(RESULT)}):
            return operand
        return None

    if isinstance(operand, cst.Attribute) and isinstance(operand.value, cst.Name):
        return operand
    return None


def extract_referenced_name(document: Document, call: cst.Call,
                            kind: ContractKind) -> Optional[str]:
    subject = extract_subject(document, call, kind)
    if isinstance(subject, cst.Name):
        return subject.value
    if isinstance(subject, cst.Attribute):
        return subject.attr.value
    if isinstance(subject, cst.Call):
        return RESULT
    return None


# ============================================================================
# Decorators
# ============================================================================

def find_decorator(document: Document, decorators: Sequence[cst.Decorator],
                   names: Sequence[str]) -> Optional[cst.Decorator]:
    """First decorator resolving to one of `names`, called or bare"""
    for decorator in decorators:
        expression = decorator.decorator
        if isinstance(expression, cst.Call):
            expression = expression.func
        if document.resolves_to(expression, names):
            return decorator
    return None


def decorator_argument(decorator: cst.Decorator) -> Optional[str]:
    """
    Class name given to a marker decorator: `@marker("Name")` or
    `@marker(Name)`.
    """
    if not isinstance(decorator.decorator, cst.Call):
        return None
    condition = _condition(decorator.decorator)
    if isinstance(condition, cst.SimpleString):
        value = condition.evaluated_value
        return value if isinstance(value, str) else None
    if isinstance(condition, (cst.Name, cst.Attribute)):
        name = get_full_name_for_node(condition)
        return name.rsplit(".", 1)[-1] if name else None
    return None


# ============================================================================
# Imports
# ============================================================================

def contract_aliases(module: cst.Module,
                     settings: Optional[ContractSettings] = None) -> List[str]:
    """
    Local expressions through which the contract API module is reachable,
    in import order. Empty if the module does not import it.
    """
    settings = resolve_settings(settings)
    contract_module = settings.contract_module
    parent, _, leaf = contract_module.rpartition(".")
    aliases: List[str] = []

    for statement in module.body:
        if not isinstance(statement, cst.SimpleStatementLine):
            continue
        for small in statement.body:
            if isinstance(small, cst.ImportFrom):
                if small.relative or isinstance(small.names, cst.ImportStar):
                    continue
                if get_full_name_for_node(small.module) != parent:
                    continue
                for alias in small.names:
                    if get_full_name_for_node(alias.name) == leaf:
                        aliases.append(alias.evaluated_alias or leaf)

            elif isinstance(small, cst.Import):
                for alias in small.names:
                    imported = get_full_name_for_node(alias.name)
                    if imported == contract_module:
                        aliases.append(alias.evaluated_alias or contract_module)
                    elif imported == parent and alias.asname is None:
                        aliases.append(contract_module)
    return aliases


def find_contract_alias(module: cst.Module,
                        settings: Optional[ContractSettings] = None) -> Optional[str]:
    """First local alias of the contract API module, or None"""
    aliases = contract_aliases(module, settings)
    return aliases[0] if aliases else None


def has_contract_import(module: cst.Module, settings: Optional[ContractSettings] = None) -> bool:
    return find_contract_alias(module, settings) is not None


def with_contract_import(module: cst.Module,
                         settings: Optional[ContractSettings] = None,
                         alias: Optional[str] = None) -> cst.Module:
    """
    Module with the contract API import added.

    Without `alias` the import is added unless one is already present. With
    `alias` it is added, bound to that name, unless an import already binds
    the contract API to `alias`.
    """
    settings = resolve_settings(settings)
    aliases = contract_aliases(module, settings)
    if (alias is None and aliases) or (alias is not None and alias in aliases):
        return module

    asname = alias if alias not in (None, settings.contract_import_name) else None
    logger.debug("Adding import of %s.%s%s", settings.contract_import_module,
                 settings.contract_import_name, f" as {asname}" if asname else "")
    context = CodemodContext()
    AddImportsVisitor.add_needed_import(
        context, settings.contract_import_module, settings.contract_import_name, asname
    )
    return AddImportsVisitor(context).transform_module(module)
