"""Users REST resource over the `user` table.

  GET    /users?page=&size=   paginated listing
  GET    /users/{id}
  POST   /users
  PUT    /users/{id}
  DELETE /users/{id}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from showcase.api.deps import get_datasources
from showcase.datasources import Datasources
from showcase.exceptions import NotFoundError
from showcase.types import User, UserIn, UserPage

router = APIRouter(prefix="/users", tags=["users"])

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 5
MAX_PAGE = 100


def page_window(page: int, size: int) -> tuple[int, int, int]:
    """Clamp the requested page and size; returns (page, size, offset).

    Sizes outside 1..MAX_PAGE_SIZE fall back to DEFAULT_PAGE_SIZE, pages
    outside 1..MAX_PAGE fall back to the first page.
    """
    if size <= 0 or size > MAX_PAGE_SIZE:
        size = DEFAULT_PAGE_SIZE
    if page <= 0 or page > MAX_PAGE:
        page = 1
    return page, size, size * (page - 1)


@router.get("")
async def list_users(
    page: int = 0, size: int = 0, ds: Datasources = Depends(get_datasources),
) -> UserPage:
    page, size, offset = page_window(page, size)
    cursor = await ds.sql.execute(
        "SELECT id, name, age FROM user ORDER BY id LIMIT ? OFFSET ?", (size, offset),
    )
    rows = await cursor.fetchall()
    return UserPage(users=[User(id=r[0], name=r[1], age=r[2]) for r in rows], page=page)


@router.get("/{user_id}")
async def get_user(user_id: int, ds: Datasources = Depends(get_datasources)) -> User:
    async with ds.sql.execute("SELECT id, name, age FROM user WHERE id = ?", (user_id,)) as cursor:
        row = await cursor.fetchone()
    if row is None:
        raise NotFoundError(f"No user with id {user_id}")
    return User(id=row[0], name=row[1], age=row[2])


@router.post("", status_code=201)
async def create_user(payload: UserIn, ds: Datasources = Depends(get_datasources)) -> User:
    cursor = await ds.sql.execute(
        "INSERT INTO user (name, age) VALUES (?, ?)", (payload.name, payload.age),
    )
    return User(id=cursor.lastrowid, **payload.model_dump())


@router.put("/{user_id}")
async def update_user(
    user_id: int, payload: UserIn, ds: Datasources = Depends(get_datasources),
) -> User:
    cursor = await ds.sql.execute(
        "UPDATE user SET name = ?, age = ? WHERE id = ?", (payload.name, payload.age, user_id),
    )
    if cursor.rowcount == 0:
        raise NotFoundError(f"No user with id {user_id}")
    return User(id=user_id, **payload.model_dump())


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: int, ds: Datasources = Depends(get_datasources)) -> Response:
    cursor = await ds.sql.execute("DELETE FROM user WHERE id = ?", (user_id,))
    if cursor.rowcount == 0:
        raise NotFoundError(f"No user with id {user_id}")
    return Response(status_code=204)
