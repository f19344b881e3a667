"""
Data models

The document table is the only SQLAlchemy model: every entity is stored as a
JSON document keyed by its path. The entities themselves are pydantic models.
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import JSON, Column, DateTime, String

from database import Base


# =============================================================================
# STORAGE
# =============================================================================

class DocumentRecord(Base):
    """A JSON document stored under a slash-separated path"""
    __tablename__ = "documents"

    path = Column(String(512), primary_key=True)
    collection = Column(String(512), nullable=False, index=True)  # path minus the last segment
    data = Column(JSON, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# ROLES
# =============================================================================

ParticipantRole = Literal["mentee", "mentor", "supermentor"]
AttributeValue = Union[bool, int, float, str]


# =============================================================================
# USERS
# =============================================================================

class User(BaseModel):
    """A user profile"""
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    last_signed_in: Optional[datetime] = None


class Principal(User):
    """The authenticated caller of a request"""
    model_config = ConfigDict(frozen=True)

    is_groot: bool = False
    token: str = Field(default="", exclude=True, repr=False)


# =============================================================================
# GROUPS
# =============================================================================

class Group(BaseModel):
    """Binds users to roles and to the conversations/reports they can access"""
    id: str
    name: str
    participants: Dict[str, ParticipantRole] = Field(default_factory=dict)
    conversations: Dict[str, List[ParticipantRole]] = Field(default_factory=dict)
    reports: Dict[str, List[ParticipantRole]] = Field(default_factory=dict)
    code: str
    tags: List[str] = Field(default_factory=list)


# =============================================================================
# CONVERSATIONS
# =============================================================================

class Conversation(BaseModel):
    id: str
    name: str
    description: str
    once: bool = False
    tags: List[str] = Field(default_factory=list)


class AttributeToSet(BaseModel):
    """The attribute to set when an option is chosen"""
    id: str
    value: AttributeValue


class NextQuestion(BaseModel):
    """Pointer to the question that follows an option"""
    conversation: str
    question: str


class Option(BaseModel):
    position: int
    type: Literal["select", "input"] = "select"
    text: str
    attribute: Optional[AttributeToSet] = None
    script: Optional[str] = None
    next: Optional[NextQuestion] = None


class Question(BaseModel):
    id: str
    text: str
    options: List[Option] = Field(default_factory=list)
    first: bool = False
    last: bool = False
    randomize_option_order: bool = False
    tags: List[str] = Field(default_factory=list)
    conversation_id: str

    @field_validator("options")
    @classmethod
    def positions_are_unique(cls, options: List[Option]) -> List[Option]:
        positions = [option.position for option in options]
        if len(positions) != len(set(positions)):
            raise ValueError("option positions must be unique within a question")
        return options


# =============================================================================
# ATTRIBUTES
# =============================================================================

class Attribute(BaseModel):
    """An attribute definition"""
    id: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    conversations: List[str] = Field(default_factory=list)


class SnapshotBlame(BaseModel):
    """Where a change to an attribute was observed"""
    model_config = ConfigDict(populate_by_name=True)

    in_: Literal["conversation", "message", "script"] = Field(alias="in")
    id: str


class AttributeSnapshot(BaseModel):
    value: AttributeValue
    observer: str  # "questioner", "bot" or the id of the user who made the change
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    message: Optional[SnapshotBlame] = None


class UserAttribute(BaseModel):
    """An attribute value held by a user, with its full history"""
    id: str
    value: AttributeValue
    history: List[AttributeSnapshot] = Field(default_factory=list)
    user_id: str

    def record(self, snapshot: AttributeSnapshot) -> "UserAttribute":
        """Append a snapshot and make its value the current one"""
        self.history.append(snapshot)
        self.value = snapshot.value
        return self


# =============================================================================
# SCRIPTS AND REPORTS
# =============================================================================

class DependentAttribute(BaseModel):
    id: str
    optional: bool = False


class ComputedAttribute(BaseModel):
    id: str
    optional: bool = False


class Script(BaseModel):
    id: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    input: List[DependentAttribute] = Field(default_factory=list)
    computed: List[ComputedAttribute] = Field(default_factory=list)
    content: str  # base64 encoded lua source


class Report(BaseModel):
    id: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    template: str  # base64 encoded jinja template
    input: List[DependentAttribute] = Field(default_factory=list)
