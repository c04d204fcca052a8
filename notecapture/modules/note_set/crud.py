"""CRUD operations for note set entities using FastCRUD."""

from fastcrud import FastCRUD

from .models import NoteSet, NoteSetMember

note_set_crud: FastCRUD = FastCRUD(NoteSet)
note_set_member_crud: FastCRUD = FastCRUD(NoteSetMember)
