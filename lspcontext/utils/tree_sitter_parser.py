"""
tree-sitter backed Parser: syntax trees by file extension, and the node path down to a cursor.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from loguru import logger
from tree_sitter import Language, Node, Parser, Tree

extension_to_language = {
    "py": "python",
    "pyi": "python",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "ts": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "tsx": "tsx",
}


def _python() -> Any:
    import tree_sitter_python

    return tree_sitter_python.language()


def _javascript() -> Any:
    import tree_sitter_javascript

    return tree_sitter_javascript.language()


def _typescript() -> Any:
    import tree_sitter_typescript

    return tree_sitter_typescript.language_typescript()


def _tsx() -> Any:
    import tree_sitter_typescript

    return tree_sitter_typescript.language_tsx()


_LANGUAGE_LOADERS: dict[str, Callable[[], Any]] = {
    "python": _python,
    "javascript": _javascript,
    "typescript": _typescript,
    "tsx": _tsx,
}

_languages: dict[str, Language] = {}
_languages_lock = threading.Lock()


def get_language_for_file(filepath: str) -> Optional[str]:
    ext = filepath.rsplit(".", 1)[-1].lower() if "." in filepath else ""
    return extension_to_language.get(ext)


def get_language(language: str) -> Language:
    with _languages_lock:
        if language not in _languages:
            _languages[language] = Language(_LANGUAGE_LOADERS[language]())
        return _languages[language]


def get_parser(language: str) -> Parser:
    # Parser objects are not safe to share across threads, so each call gets its own.
    return Parser(get_language(language))


class TreeSitterParser:
    def parse(self, filepath: str, contents: str) -> Optional[Tree]:
        language = get_language_for_file(filepath)
        if language is None:
            logger.debug(f"No tree-sitter grammar for {filepath}")
            return None
        try:
            parser = get_parser(language)
        except Exception as e:
            logger.warning(f"Could not load {language} grammar: {e}")
            return None
        return parser.parse(contents.encode("utf8"))

    def path_to_cursor(self, tree: Tree, offset: int) -> Optional[list[Node]]:
        """
        Nodes from the root down to the innermost node containing `offset`.

        `offset` counts characters; it is converted to the byte offsets tree-sitter uses.
        """
        root = tree.root_node
        source = root.text.decode("utf8", errors="replace") if root.text is not None else ""
        byte_offset = len(source[: max(0, offset)].encode("utf8"))

        path = [root]
        while path[-1].child_count > 0:
            for child in path[-1].children:
                if child.start_byte <= byte_offset <= child.end_byte:
                    path.append(child)
                    break
            else:
                break
        return path
