from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional, Union

# Collection: lessons
class Lesson(BaseModel):
    topic: str = Field(..., description="Lesson topic")
    price: float = Field(..., ge=0, description="Price per space")
    location: str = Field(..., description="Where the lesson takes place")
    space: int = Field(..., ge=0, description="Remaining bookable spaces")
    desc: Optional[str] = Field(None, description="Lesson description")

# Collection: orders
class OrderIn(BaseModel):
    """Either lessonIds + spaces, or items; checked by validators.normalize_order."""
    model_config = ConfigDict(extra="allow")

    name: Optional[Any] = None
    phone: Optional[Any] = None
    lessonIds: Optional[Any] = None
    spaces: Optional[Any] = None
    items: Optional[Any] = None

class Order(BaseModel):
    name: Any
    phone: Any
    lessonIds: List[Any]
    spaces: Union[int, float]
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class LessonUpdateResult(BaseModel):
    ok: bool = True
    matchedCount: int
    modifiedCount: int
