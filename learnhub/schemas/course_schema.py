from pydantic import BaseModel, Field, StrictBool, StrictInt
from typing import Annotated, List, Optional, Union, Literal

from learnhub.models.enums import ContentType

# --- Authoring schemas (consumed from the content-authoring collaborator) ---

class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Title of the module")
    description: Optional[str] = Field(None, description="Detailed description of the module")
    module_order: Optional[int] = Field(None, ge=0, description="Ranking among modules; defaults to last + 1")
    is_active: bool = True

class ChapterCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    chapter_order: Optional[int] = Field(None, ge=0, description="Order within the module; defaults to last + 1")
    is_active: bool = True

class ContentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content_type: ContentType = Field(..., description="VIDEO or AUDIO")
    url: str = Field(..., min_length=1, max_length=1024)
    duration_seconds: int = Field(..., gt=0, description="Length of the media in seconds")
    content_order: Optional[int] = Field(None, ge=0, description="Order within the chapter; defaults to last + 1")
    is_active: bool = True

class MultipleChoiceQuestionCreate(BaseModel):
    kind: Literal["MULTIPLE_CHOICE"]
    question_text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=4, max_length=4, description="Exactly four options")
    correct_answer: StrictInt = Field(..., ge=0, le=3, description="Index of the correct option")
    explanation: Optional[str] = Field(None, max_length=2000)

class TrueFalseQuestionCreate(BaseModel):
    kind: Literal["TRUE_FALSE"]
    question_text: str = Field(..., min_length=1)
    correct_answer: StrictBool
    explanation: Optional[str] = Field(None, max_length=2000)

QuestionCreate = Annotated[
    Union[MultipleChoiceQuestionCreate, TrueFalseQuestionCreate],
    Field(discriminator="kind"),
]

class QuizCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    passing_score: int = Field(70, ge=0, le=100, description="Minimum score (inclusive) to pass")
    time_limit_minutes: Optional[int] = Field(None, gt=0)
    questions: List[QuestionCreate] = Field(default_factory=list)

# --- Fetch-quiz payload (correct answers and explanations are never sent before submission) ---

class QuizQuestionDisplay(BaseModel):
    id: int
    kind: str
    question_text: str
    options: Optional[List[str]] = None

class ModuleRef(BaseModel):
    id: int
    title: str
    order: int

class ChapterRef(BaseModel):
    id: int
    title: str
    order: int
    module: ModuleRef

class QuizDisplay(BaseModel):
    id: int
    chapter_id: int
    title: str
    description: Optional[str] = None
    passing_score: int
    time_limit: int = Field(..., description="Time limit in minutes")
    questions: List[QuizQuestionDisplay]
    chapter: ChapterRef
