"""
Recognized marker names and settings
"""

import tomllib
from pathlib import Path
from typing import FrozenSet, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Qualified names the markers resolve to
NOT_NULL_NAMES = frozenset({
    "contractsync.NotNull",
    "contractsync.annotations.NotNull",
})

ANNOTATED_NAMES = frozenset({
    "typing.Annotated",
    "typing_extensions.Annotated",
})

CONTRACT_CLASS_NAMES = frozenset({
    "contractsync.contract_class",
    "contractsync.decorators.contract_class",
})

CONTRACT_CLASS_FOR_NAMES = frozenset({
    "contractsync.contract_class_for",
    "contractsync.decorators.contract_class_for",
})

INVARIANT_METHOD_NAMES = frozenset({
    "contractsync.contract_invariant_method",
    "contractsync.decorators.contract_invariant_method",
})

ABSTRACT_METHOD_NAMES = frozenset({
    "abc.abstractmethod",
})

OVERLOAD_NAMES = frozenset({
    "typing.overload",
    "typing_extensions.overload",
})

PROTOCOL_NAMES = frozenset({
    "typing.Protocol",
    "typing_extensions.Protocol",
})

# Contract API module and the import added when it is missing
CONTRACT_MODULE = "contractsync.contract"
CONTRACT_IMPORT_MODULE = "contractsync"
CONTRACT_IMPORT_NAME = "contract"

# Function names inside the contract API module
REQUIRES = "requires"
ENSURES = "ensures"
RESULT = "result"
INVARIANT = "invariant"


class ContractSettings(BaseModel):
    """Names the analyzer and synthesizer recognize"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    not_null_names: FrozenSet[str] = NOT_NULL_NAMES
    annotated_names: FrozenSet[str] = ANNOTATED_NAMES
    contract_class_names: FrozenSet[str] = CONTRACT_CLASS_NAMES
    contract_class_for_names: FrozenSet[str] = CONTRACT_CLASS_FOR_NAMES
    invariant_method_names: FrozenSet[str] = INVARIANT_METHOD_NAMES
    abstract_method_names: FrozenSet[str] = ABSTRACT_METHOD_NAMES
    overload_names: FrozenSet[str] = OVERLOAD_NAMES
    protocol_names: FrozenSet[str] = PROTOCOL_NAMES
    contract_module: str = Field(default=CONTRACT_MODULE, min_length=1)
    contract_import_module: str = Field(default=CONTRACT_IMPORT_MODULE, min_length=1)
    contract_import_name: str = Field(default=CONTRACT_IMPORT_NAME, min_length=1)

    def contract_function(self, name: str) -> str:
        """Qualified name of a function of the contract API"""
        return f"{self.contract_module}.{name}"

    @classmethod
    def from_pyproject(cls, path: Union[str, Path]) -> "ContractSettings":
        """
        Load settings from the [tool.contractsync] table of a pyproject.toml.

        Missing file or table gives the defaults.

        Raises:
            ValueError: If the table holds unknown keys or invalid values
        """
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, "rb") as f:
            data = tomllib.load(f)

        table = data.get("tool", {}).get("contractsync")
        if not table:
            return cls()
        return cls.model_validate(table)


DEFAULT_SETTINGS = ContractSettings()


def resolve_settings(settings: Optional[ContractSettings]) -> ContractSettings:
    return settings if settings is not None else DEFAULT_SETTINGS
