"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from reportbridge.domain.entities import (
    AccountCodeMapping,
    CustomTransformation,
    PropertyMapping,
    TransformationRule,
)


class Database(ABC):
    """Abstract database interface for reportbridge."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account code mapping operations
    @abstractmethod
    def add_code_mapping(self, mapping: AccountCodeMapping) -> int:
        """Store an account code mapping. Returns mapping ID."""
        pass

    @abstractmethod
    def code_mapping_exists(self, source_code: str, property_id: int) -> bool:
        """Check if a mapping exists for a (source code, property) pair."""
        pass

    @abstractmethod
    def list_code_mappings(self, property_id: Optional[int] = None) -> list[AccountCodeMapping]:
        """List code mappings, optionally only those of one property."""
        pass

    @abstractmethod
    def delete_code_mappings(self, property_id: Optional[int] = None) -> int:
        """Delete code mappings (all, or one property's). Returns count deleted."""
        pass

    # Property mapping operations
    @abstractmethod
    def create_property_mapping(
        self, property_id: str, property_name: str, file_format: str = "all"
    ) -> int:
        """Create a rule set for a property. Returns its ID."""
        pass

    @abstractmethod
    def get_property_mapping(self, property_id: str) -> Optional[PropertyMapping]:
        """Get a property's rule set, rules included."""
        pass

    @abstractmethod
    def list_property_mappings(self) -> list[PropertyMapping]:
        """List all rule sets."""
        pass

    @abstractmethod
    def delete_property_mapping(self, property_id: str) -> None:
        """Delete a property's rule set and its rules."""
        pass

    # Transformation rule operations
    @abstractmethod
    def add_transformation_rule(self, property_id: str, rule: TransformationRule) -> int:
        """Append a rule to a property's rule set. Returns rule ID."""
        pass

    @abstractmethod
    def get_transformation_rules(self, property_id: str) -> list[TransformationRule]:
        """Get a property's rules in the order they were added."""
        pass

    # Custom transformation operations
    @abstractmethod
    def add_custom_transformation(self, transformation: CustomTransformation) -> int:
        """Store a custom transformation declaration. Returns its ID."""
        pass

    @abstractmethod
    def list_custom_transformations(self) -> list[CustomTransformation]:
        """List declared custom transformations."""
        pass
