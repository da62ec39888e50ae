"""CRUD operations for ORM models."""

from prd_reviewer.boundary.db.CRUD.base_crud import BaseCRUD
from prd_reviewer.boundary.db.CRUD.review_crud import ReviewCRUD, review_crud

__all__ = ["BaseCRUD", "ReviewCRUD", "review_crud"]
