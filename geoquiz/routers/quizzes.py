"""Quiz routes: list, photos, create, update, delete. Multipart uploads for photos."""
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.core.errors import InvalidInput, QuizError
from geoquiz.db.session import get_db
from geoquiz.routers.auth import get_owner_id
from geoquiz.schemas.quiz import PhotoListSchema, QuizListSchema, QuizOutSchema, QuizResultSchema
from geoquiz.services import quizzes
from geoquiz.services.ledger import Attribution, Ledger
from geoquiz.services.uploads import ImageStore

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def get_ledger(db: Annotated[AsyncSession, Depends(get_db)]) -> Ledger:
    return Ledger(db)


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def _attribution(owner_id: int | None, creator_name: str | None) -> Attribution:
    if owner_id is not None:
        return Attribution(user_id=owner_id)
    creator_name = (creator_name or "").strip()
    if not creator_name:
        raise InvalidInput("Creator name required")
    return Attribution(creator_name=creator_name)


@router.get("", response_model=QuizListSchema)
async def list_quizzes(
    ledger: Annotated[Ledger, Depends(get_ledger)],
    owner_id: Annotated[int | None, Depends(get_owner_id)],
):
    """Quizzes visible to the caller, newest first."""
    items = await quizzes.list_quizzes(ledger, owner_id)
    return QuizListSchema(quizzes=[QuizOutSchema.model_validate(q) for q in items])


@router.get("/{quiz_id}/photos", response_model=PhotoListSchema)
async def list_photos(
    quiz_id: int,
    ledger: Annotated[Ledger, Depends(get_ledger)],
    owner_id: Annotated[int | None, Depends(get_owner_id)],
):
    photos = await quizzes.list_photos(ledger, quiz_id, owner_id)
    return PhotoListSchema(photos=photos)


@router.post("", response_model=QuizResultSchema, status_code=201)
async def create_quiz(
    ledger: Annotated[Ledger, Depends(get_ledger)],
    store: Annotated[ImageStore, Depends(get_image_store)],
    owner_id: Annotated[int | None, Depends(get_owner_id)],
    images: Annotated[list[UploadFile] | None, File()] = None,
    quizName: Annotated[str | None, Form()] = None,
    gameData: Annotated[str | None, Form()] = None,
    creatorName: Annotated[str | None, Form()] = None,
):
    """Create a quiz from 5 images and a JSON array of 5 ``{location: [lat, lon]}``."""
    images = images or []
    entries = quizzes.parse_game_data(gameData)
    # reject before anything is written to disk
    quizzes.validate_create(quizName, len(images), entries)
    attribution = _attribution(owner_id, creatorName)

    paths = await store.save_all(images)
    try:
        quiz = await quizzes.create_quiz(ledger, attribution, quizName, paths, entries)
    except QuizError:
        store.discard(paths)
        raise
    return QuizResultSchema(
        message="Quiz created successfully!",
        quiz=QuizOutSchema.model_validate(quiz),
    )


@router.put("/{quiz_id}", response_model=QuizResultSchema)
async def update_quiz(
    quiz_id: int,
    ledger: Annotated[Ledger, Depends(get_ledger)],
    store: Annotated[ImageStore, Depends(get_image_store)],
    owner_id: Annotated[int | None, Depends(get_owner_id)],
    images: Annotated[list[UploadFile] | None, File()] = None,
    quizName: Annotated[str | None, Form()] = None,
    gameData: Annotated[str | None, Form()] = None,
):
    """Rename a quiz and/or replace its five photos."""
    images = images or []
    await quizzes.authorize(ledger, quiz_id, owner_id)
    # do not hold the read open while files are written
    await ledger.end_read()
    entries = quizzes.parse_game_data(gameData)
    quizzes.validate_replacement(len(images), entries)

    paths = await store.save_all(images)
    try:
        quiz = await quizzes.update_quiz(ledger, quiz_id, owner_id, quizName, paths, entries)
    except QuizError:
        store.discard(paths)
        raise
    return QuizResultSchema(
        message="Quiz updated successfully!",
        quiz=QuizOutSchema.model_validate(quiz),
    )


@router.delete("/{quiz_id}", response_model=QuizResultSchema)
async def delete_quiz(
    quiz_id: int,
    ledger: Annotated[Ledger, Depends(get_ledger)],
    owner_id: Annotated[int | None, Depends(get_owner_id)],
):
    await quizzes.delete_quiz(ledger, quiz_id, owner_id)
    return QuizResultSchema(message="Quiz deleted successfully")
