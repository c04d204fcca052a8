"""CRUD operations for context documents using FastCRUD."""

from fastcrud import FastCRUD

from .models import ContextDocument

context_document_crud: FastCRUD = FastCRUD(ContextDocument)
