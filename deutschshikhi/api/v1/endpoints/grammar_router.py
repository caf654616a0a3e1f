from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.core.errors import DomainError
from deutschshikhi.crud import content_crud
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok
from deutschshikhi.schemas.content_schema import GrammarTopicDetail, GrammarTopicRead
from deutschshikhi.services.progress_service import ProgressService

router = APIRouter()


@router.get("/")
def list_grammar_topics(level_id: Optional[int] = None, db: Session = Depends(get_db)):
    topics = content_crud.list_grammar_topics(db, level_id=level_id)
    return ok([dump(GrammarTopicRead.model_validate(topic)) for topic in topics], count=len(topics))


@router.get("/by-lesson/{lesson_id}", summary="Points de grammaire rattachés à une leçon")
def list_lesson_grammar_topics(lesson_id: int, db: Session = Depends(get_db)):
    topics = content_crud.list_lesson_grammar_topics(db, lesson_id)
    return ok([dump(GrammarTopicRead.model_validate(topic)) for topic in topics], count=len(topics))


@router.get("/{id_or_slug}")
def read_grammar_topic(id_or_slug: str, db: Session = Depends(get_db)):
    topic = content_crud.get_grammar_topic(db, id_or_slug)
    if topic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grammar topic not found.")
    return ok(dump(GrammarTopicDetail.model_validate(topic)))


@router.post("/{topic_id}/complete")
def complete_grammar_topic(
    topic_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        result = service.complete_grammar(topic_id)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(result, message="Grammar topic completed.")
