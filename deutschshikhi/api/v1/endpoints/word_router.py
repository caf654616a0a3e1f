from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.core.errors import DomainError
from deutschshikhi.crud import content_crud
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok, page_meta
from deutschshikhi.schemas.content_schema import WordRead
from deutschshikhi.schemas.progress_schema import LearnWordsIn
from deutschshikhi.services.progress_service import ProgressService

router = APIRouter()

MAX_RANDOM_WORDS = 50


@router.get("/", summary="Vocabulaire vérifié, paginé")
def list_words(
    lesson: Optional[int] = None,
    level: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    words, total = content_crud.list_verified_words(
        db,
        lesson_id=lesson,
        level_id=level,
        search=search,
        page=page,
        limit=limit,
    )
    return ok(
        [dump(WordRead.model_validate(word)) for word in words],
        count=len(words),
        **page_meta(total, page, limit),
    )


@router.get("/random/{count}", summary="Tirage aléatoire pour l'entraînement")
def random_words(
    count: int = Path(..., ge=1),
    level: Optional[int] = None,
    db: Session = Depends(get_db),
):
    words = content_crud.random_verified_words(db, min(count, MAX_RANDOM_WORDS), level_id=level)
    return ok([dump(WordRead.model_validate(word)) for word in words], count=len(words))


@router.get("/{word_id}")
def read_word(word_id: int, db: Session = Depends(get_db)):
    word = content_crud.get_verified_word(db, word_id)
    if word is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Word not found.")
    return ok(dump(WordRead.model_validate(word)))


@router.post("/learn", summary="Marque un ou plusieurs mots comme appris")
def learn_words(
    payload: LearnWordsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        result = service.learn_words(payload.all_ids())
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(result, message=f"{result['count']} word(s) learned.")
