"""SQLAlchemy models for reportbridge database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class AccountCodeMapping(Base):
    """Source -> target account code mapping model."""

    __tablename__ = "account_code_mappings"

    id = Column(Integer, primary_key=True)
    source_code = Column(String, nullable=False)
    source_description = Column(String, nullable=True)
    target_code = Column(String, nullable=False)
    target_name = Column(String, nullable=False, default="")
    property_id = Column(Integer, nullable=False, default=0)
    property_name = Column(String, nullable=True)
    # Decimal text; SQLite has no exact decimal type
    multiplier = Column(String, nullable=False, default="1")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Property 0 holds the global mappings
    __table_args__ = (
        UniqueConstraint("source_code", "property_id", name="uq_source_code_property"),
    )


class PropertyMapping(Base):
    """Transformation rule set for one property."""

    __tablename__ = "property_mappings"

    id = Column(Integer, primary_key=True)
    property_id = Column(String, unique=True, nullable=False)
    property_name = Column(String, nullable=False)
    file_format = Column(String, nullable=False, default="all")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    rules = relationship(
        "TransformationRule",
        back_populates="property_mapping",
        cascade="all, delete-orphan",
        order_by="TransformationRule.position",
    )


class TransformationRule(Base):
    """Transformation rule model."""

    __tablename__ = "transformation_rules"

    id = Column(Integer, primary_key=True)
    property_mapping_id = Column(Integer, ForeignKey("property_mappings.id"), nullable=False)
    position = Column(Integer, nullable=False)
    source_path = Column(String, nullable=False)
    target_field = Column(String, nullable=False)
    data_type = Column(String, nullable=False, default="string")
    required = Column(Boolean, default=False, nullable=False)
    default_value = Column(String, nullable=True)
    transformation = Column(String, nullable=True)
    # JSON encoded
    transformation_params = Column(Text, nullable=True)
    min_length = Column(Integer, nullable=True)
    max_length = Column(Integer, nullable=True)
    pattern = Column(String, nullable=True)
    allowed_values = Column(Text, nullable=True)

    # Relationships
    property_mapping = relationship("PropertyMapping", back_populates="rules")


class CustomTransformation(Base):
    """Named custom transformation model."""

    __tablename__ = "custom_transformations"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    function = Column(String, nullable=True)
    parameters = Column(Text, nullable=True)
    code = Column(Text, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
