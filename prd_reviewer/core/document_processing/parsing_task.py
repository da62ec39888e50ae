"""
Document parsing task using LangChain community loaders.

Extracts plain text from PRD and supplementary uploads. Markdown and text
files are read as UTF-8, PDFs through PyPDFLoader, Word documents through
Docx2txtLoader.

Dependencies: langchain_community.document_loaders
System role: Text extraction stage of a review run
"""

import asyncio
import re
from pathlib import Path
from typing import Callable

from langchain_community.document_loaders import Docx2txtLoader, PyPDFLoader, TextLoader
from langchain_core.document_loaders import BaseLoader

from prd_reviewer.core.exceptions import ParsingError

SUPPORTED_EXTENSIONS = [".md", ".markdown", ".txt", ".pdf", ".docx"]

_LOADERS: dict[str, Callable[[str], BaseLoader]] = {
    ".md": lambda path: TextLoader(path, encoding="utf-8"),
    ".markdown": lambda path: TextLoader(path, encoding="utf-8"),
    ".txt": lambda path: TextLoader(path, encoding="utf-8"),
    ".pdf": PyPDFLoader,
    ".docx": Docx2txtLoader,
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def file_extension(file_name: str) -> str:
    return Path(file_name).suffix.lower()


def is_supported_file(file_name: str) -> bool:
    """Whether the file's extension has a text extractor."""
    return file_extension(file_name) in SUPPORTED_EXTENSIONS


def safe_file_name(file_name: str) -> str:
    """Replace anything outside [A-Za-z0-9._-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", file_name)


class ParsingTask:
    """Extract text from supported document types."""

    def parse(self, file_path: str | Path) -> str:
        """
        Extract the text of a document.

        Args:
            file_path: Path to the document

        Returns:
            str: Extracted text, pages joined by blank lines

        Raises:
            ParsingError: When the file is missing, unsupported or unreadable
        """
        path = Path(file_path)
        extension = path.suffix.lower()
        if not path.exists():
            raise ParsingError(f"File not found: {path}", str(path), extension)

        loader_factory = _LOADERS.get(extension)
        if loader_factory is None:
            raise ParsingError(f"Unsupported file type: {extension}", str(path), extension)

        try:
            documents = loader_factory(str(path)).load()
        except Exception as e:
            raise ParsingError(f"Failed to parse {path.name}: {e}", str(path), extension) from e

        return "\n\n".join(doc.page_content for doc in documents).strip()

    async def aparse(self, file_path: str | Path) -> str:
        """Async wrapper running the blocking loader in a worker thread."""
        return await asyncio.to_thread(self.parse, file_path)
