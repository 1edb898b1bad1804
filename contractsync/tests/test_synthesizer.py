"""
Tests for contract synthesis
"""

import textwrap

import libcst as cst
import pytest

from contractsync.core.analyzer import analyze
from contractsync.core.document import Document
from contractsync.core.synthesizer import add_contract, fix_all, fix_at


def parse(source: str) -> Document:
    return Document.from_source(textwrap.dedent(source))


def fix_first(source: str) -> str:
    document = parse(source)
    findings = analyze(document)
    assert findings, "expected a finding"
    return add_contract(document, findings[0].anchor).code


def test_precondition_inserted_after_earlier_parameters():
    fixed = fix_first('''
        from contractsync import NotNull, contract

        class Service:
            def method(self, arg: NotNull[object], arg2: NotNull[object]):
                contract.requires(arg is not None)

                arg = arg2
    ''')

    assert fixed == textwrap.dedent('''
        from contractsync import NotNull, contract

        class Service:
            def method(self, arg: NotNull[object], arg2: NotNull[object]):
                contract.requires(arg is not None)
                contract.requires(arg2 is not None)

                arg = arg2
    ''')


def test_fix_all_orders_preconditions_by_parameter():
    document = parse('''
        from contractsync import NotNull, contract

        def method(a: NotNull[object], b: NotNull[object], c: NotNull[object]):
            contract.requires(c is not None)
            run(a, b, c)
    ''')

    fixed = fix_all(document)

    assert fixed.code == textwrap.dedent('''
        from contractsync import NotNull, contract

        def method(a: NotNull[object], b: NotNull[object], c: NotNull[object]):
            contract.requires(a is not None)
            contract.requires(b is not None)
            contract.requires(c is not None)
            run(a, b, c)
    ''')
    assert analyze(Document(fixed)) == []


def test_postcondition_inserted_after_preconditions():
    fixed = fix_first('''
        from contractsync import NotNull, contract

        class Service:
            def method(self, a: NotNull[object]) -> NotNull[object]:
                contract.requires(a != None)
                return None
    ''')

    assert fixed == textwrap.dedent('''
        from contractsync import NotNull, contract

        class Service:
            def method(self, a: NotNull[object]) -> NotNull[object]:
                contract.requires(a != None)
                contract.ensures(contract.result(object) is not None)
                return None
    ''')


def test_postcondition_keeps_generic_return_type():
    fixed = fix_first('''
        import typing
        from typing import Annotated
        from contractsync import NotNull, contract

        def items() -> Annotated[typing.Iterable[typing.Dict[str, object]], NotNull]:
            return None
    ''')
    assert ("contract.ensures(contract.result(typing.Iterable[typing.Dict[str, object]])"
            " is not None)") in fixed


def test_contract_class_receives_the_fix():
    """Test fixes for a Protocol stub go into the contract class member"""
    document = parse('''
        from typing import Protocol
        from contractsync import NotNull, contract, contract_class, contract_class_for

        @contract_class("RepositoryContract")
        class Repository(Protocol):
            def find(self, key: NotNull[str]) -> NotNull[object]:
                ...

        @contract_class_for(Repository)
        class RepositoryContract:
            def find(self, k):
                return object()
    ''')

    fixed = fix_all(document)

    assert fixed.code == textwrap.dedent('''
        from typing import Protocol
        from contractsync import NotNull, contract, contract_class, contract_class_for

        @contract_class("RepositoryContract")
        class Repository(Protocol):
            def find(self, key: NotNull[str]) -> NotNull[object]:
                ...

        @contract_class_for(Repository)
        class RepositoryContract:
            def find(self, k):
                contract.requires(k is not None)
                contract.ensures(contract.result(object) is not None)
                return object()
    ''')
    assert analyze(Document(fixed)) == []


def test_invariant_appended_to_invariant_method():
    fixed = fix_first('''
        from contractsync import NotNull, contract, contract_invariant_method

        class Person:
            name: NotNull[str]

            @contract_invariant_method
            def _invariants(this):
                contract.invariant(this.age is not None)
    ''')

    assert fixed == textwrap.dedent('''
        from contractsync import NotNull, contract, contract_invariant_method

        class Person:
            name: NotNull[str]

            @contract_invariant_method
            def _invariants(this):
                contract.invariant(this.age is not None)
                contract.invariant(this.name is not None)
    ''')


def test_precondition_goes_after_docstring():
    fixed = fix_first('''
        from contractsync import NotNull, contract

        def greet(name: NotNull[str]) -> str:
            """Say hello."""
            return "Hello " + name
    ''')

    assert fixed == textwrap.dedent('''
        from contractsync import NotNull, contract

        def greet(name: NotNull[str]) -> str:
            """Say hello."""
            contract.requires(name is not None)
            return "Hello " + name
    ''')


def test_one_line_body_is_expanded():
    fixed = fix_first('''
        from contractsync import NotNull, contract

        def ident(value: NotNull[object]): return value
    ''')

    assert fixed == textwrap.dedent('''
        from contractsync import NotNull, contract

        def ident(value: NotNull[object]):
            contract.requires(value is not None)
            return value
    ''')


def test_existing_alias_is_used():
    fixed = fix_first('''
        import contractsync.contract as c
        from contractsync import NotNull

        def run(job: NotNull[object]):
            pass
    ''')

    assert "    c.requires(job is not None)\n" in fixed
    assert fixed.count("import") == 2


def test_missing_import_added_once():
    document = parse('''
        from contractsync.annotations import NotNull

        def run(job: NotNull[object], queue: NotNull[object]):
            pass
    ''')

    code = fix_all(document).code

    assert code.count("from contractsync import contract\n") == 1
    assert code.index("from contractsync import contract") < code.index("def run")
    assert "contract.requires(job is not None)\n    contract.requires(queue is not None)" in code


def test_unfixable_anchor_leaves_tree_unchanged():
    """Test a Protocol stub without contract class is a no-op"""
    document = parse('''
        from typing import Protocol
        from contractsync import NotNull

        class Repository(Protocol):
            def find(self, key: NotNull[str]):
                ...
    ''')
    find = document.module.body[2].body.body[0]
    key = find.params.params[1]

    assert add_contract(document, key) is document.module
    assert add_contract(document, find) is document.module


def test_unexpected_anchor_leaves_tree_unchanged():
    document = parse('''
        from contractsync import NotNull

        def run(job: NotNull[object]):
            pass
    ''')

    assert add_contract(document, document.module.body[0]) is document.module
    assert add_contract(document, cst.Name("job")) is document.module


def test_existing_contract_is_not_duplicated():
    document = parse('''
        from contractsync import NotNull, contract

        def run(job: NotNull[object]):
            contract.requires(job is not None)
    ''')
    job = document.module.body[1].params.params[0]

    assert add_contract(document, job) is document.module


def test_fix_at_position():
    document = parse('''\
        from contractsync import NotNull, contract

        def run(job: NotNull[object], queue: NotNull[object]):
            pass
    ''')
    queue = [f for f in analyze(document) if f.subject == "queue"][0]

    fixed = fix_at(document, queue.span.start_line, queue.span.start_column + 2)

    assert "contract.requires(queue is not None)" in fixed.code
    assert "contract.requires(job is not None)" not in fixed.code
    assert fix_at(document, 1, 0) is None


def test_fix_all_is_idempotent():
    document = parse('''
        from typing import List
        from contractsync import NotNull, contract, contract_invariant_method

        class Registry:
            entries: NotNull[List[str]]

            def add(self, entry: NotNull[str]) -> NotNull[List[str]]:
                self.entries.append(entry)
                return self.entries

            @contract_invariant_method
            def _invariants(self):
                pass
    ''')

    once = fix_all(document)
    twice = fix_all(Document(once))

    assert analyze(Document(once)) == []
    assert twice.code == once.code
    assert "contract.invariant(self.entries is not None)" in once.code
    assert "contract.ensures(contract.result(List[str]) is not None)" in once.code


def test_original_document_is_not_modified():
    source = textwrap.dedent('''
        from contractsync import NotNull

        def run(job: NotNull[object]):
            pass
    ''')
    document = Document.from_source(source)

    fix_all(document)

    assert document.code == source
    assert len(analyze(document)) == 1


def test_fix_all_leaves_overload_stubs_alone():
    document = parse('''
        from typing import overload
        from contractsync import NotNull, contract

        @overload
        def first(a: NotNull[list]) -> object:
            ...

        @overload
        def first(a: NotNull[tuple]) -> object:
            ...

        def first(a: NotNull[object]) -> object:
            return a[0]
    ''')

    code = fix_all(document).code

    assert code.count("contract.requires(a is not None)") == 1
    assert "    contract.requires(a is not None)\n    return a[0]\n" in code
    assert code.count("        ...\n") == 0
    assert code.count("    ...\n") == 2


def test_parameter_named_like_contract_api():
    """Test the contract import gets a free name when `contract` is a parameter"""
    document = parse('''
        from contractsync.annotations import NotNull

        def sign(contract: NotNull[str]):
            return contract
    ''')

    fixed = fix_all(document)

    assert "from contractsync import contract as contract_1\n" in fixed.code
    assert "    contract_1.requires(contract is not None)\n    return contract\n" in fixed.code
    assert analyze(Document(fixed)) == []


def test_shadowed_contract_import_is_not_used():
    """Test an existing import hidden by a local name is not called through"""
    document = parse('''
        from contractsync import NotNull, contract

        def sign(contract: NotNull[str], key: NotNull[str]):
            return contract + key
    ''')

    fixed = fix_all(document)

    assert "contract_1.requires(contract is not None)" in fixed.code
    assert "contract_1.requires(key is not None)" in fixed.code
    assert "contract.requires" not in fixed.code.replace("contract_1.requires", "")
    assert analyze(Document(fixed)) == []


def test_module_global_named_like_contract_api():
    document = parse('''
        from contractsync.annotations import NotNull

        contract = {"id": 1}

        def sign(key: NotNull[str]):
            return contract[key]
    ''')

    fixed = fix_all(document)

    assert "    contract_1.requires(key is not None)\n" in fixed.code
    assert analyze(Document(fixed)) == []


def test_import_visible_in_other_methods_is_reused():
    """Test a shadowing parameter in one method does not affect another"""
    document = parse('''
        from contractsync import NotNull, contract

        class Signer:
            def sign(self, key: NotNull[str]):
                return key

            def contract_for(self, contract):
                return contract
    ''')

    code = fix_all(document).code

    assert "        contract.requires(key is not None)\n" in code
    assert "contract_1" not in code


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
