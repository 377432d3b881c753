"""
Detecção de linguagem e padrões de extração por linguagem
"""

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, List, Optional, Pattern, Tuple

UNKNOWN_LANGUAGE = "unknown"

EXTENSION_LANGUAGES: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".php": "php",
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".rb": "ruby",
    ".cpp": "c-family",
    ".cc": "c-family",
    ".hpp": "c-family",
    ".c": "c-family",
    ".h": "c-family",
    ".html": "html",
    ".htm": "html",
    ".vue": "vue",
    ".svelte": "svelte",
    ".go": "go",
}


@dataclass(frozen=True)
class LanguageSyntax:
    """Padrões de import, nome de função e nome de classe de uma linguagem; o grupo 1 é o nome"""
    import_patterns: Tuple[Pattern, ...] = ()
    function_pattern: Optional[Pattern] = None
    class_pattern: Optional[Pattern] = None


_JS_IMPORTS = (
    re.compile(r"import\s+.*?\s+from\s+['\"]([^'\"]+)['\"]"),
    re.compile(r"import\s+['\"]([^'\"]+)['\"]"),
    re.compile(r"require\(\s*['\"]([^'\"]+)['\"]\s*\)"),
)
_JS_FUNCTION = re.compile(r"function\s+([a-zA-Z_$][a-zA-Z0-9_$]*)")
_JS_CLASS = re.compile(r"class\s+([a-zA-Z_$][a-zA-Z0-9_$]*)")
_TYPED_METHOD = re.compile(
    r"(?:public|private|protected)\s+(?:static\s+)?(?:async\s+)?[a-zA-Z_][a-zA-Z0-9_<>\[\],]*\s+"
    r"([a-zA-Z_][a-zA-Z0-9_]*)\s*\("
)

LANGUAGE_SYNTAX: Dict[str, LanguageSyntax] = {
    "javascript": LanguageSyntax(_JS_IMPORTS, _JS_FUNCTION, _JS_CLASS),
    "typescript": LanguageSyntax(_JS_IMPORTS, _JS_FUNCTION, _JS_CLASS),
    "vue": LanguageSyntax(_JS_IMPORTS, _JS_FUNCTION, _JS_CLASS),
    "svelte": LanguageSyntax(_JS_IMPORTS, _JS_FUNCTION, _JS_CLASS),
    "php": LanguageSyntax(
        (
            re.compile(r"^\s*use\s+([^;]+);", re.MULTILINE),
            re.compile(r"(?:require|include)(?:_once)?\s*\(?\s*['\"]([^'\"]+)['\"]"),
        ),
        re.compile(r"function\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
        re.compile(r"class\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
    ),
    "python": LanguageSyntax(
        (
            re.compile(r"^\s*import\s+([a-zA-Z_][\w.]*)", re.MULTILINE),
            re.compile(r"^\s*from\s+([a-zA-Z_.][\w.]*)\s+import", re.MULTILINE),
        ),
        re.compile(r"def\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
        re.compile(r"class\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
    ),
    "java": LanguageSyntax(
        (re.compile(r"^\s*import\s+(?:static\s+)?([^;]+);", re.MULTILINE),),
        _TYPED_METHOD,
        re.compile(r"class\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
    ),
    "csharp": LanguageSyntax(
        (re.compile(r"^\s*using\s+(?:static\s+)?([a-zA-Z_][\w.]*)\s*;", re.MULTILINE),),
        _TYPED_METHOD,
        re.compile(r"class\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
    ),
    "ruby": LanguageSyntax(
        (re.compile(r"require(?:_relative)?\s*\(?\s*['\"]([^'\"]+)['\"]"),),
        re.compile(r"def\s+(?:self\.)?([a-zA-Z_][a-zA-Z0-9_]*[?!]?)"),
        re.compile(r"class\s+([A-Z][a-zA-Z0-9_:]*)"),
    ),
    "c-family": LanguageSyntax(
        (re.compile(r"#include\s*[<\"]([^>\"]+)[>\"]"),),
        re.compile(r"^[a-zA-Z_][\w:<>\*&]*\s+\**([a-zA-Z_][a-zA-Z0-9_]*)\s*\(", re.MULTILINE),
        re.compile(r"class\s+([a-zA-Z_][a-zA-Z0-9_]*)"),
    ),
    "go": LanguageSyntax(
        (re.compile(r"^\s*(?:import\s+)?(?:[a-zA-Z_.]\w*\s+)?\"([^\"]+)\"\s*$", re.MULTILINE),),
        re.compile(r"func\s+(?:\([^)]*\)\s*)?([a-zA-Z_][a-zA-Z0-9_]*)"),
        re.compile(r"type\s+([a-zA-Z_][a-zA-Z0-9_]*)\s+struct"),
    ),
}


def language_for_path(file_path: str) -> str:
    """
    Retorna a tag de linguagem de um caminho de arquivo

    Args:
        file_path: Caminho ou nome do arquivo

    Returns:
        Tag de linguagem, "unknown" para extensões não reconhecidas
    """
    suffix = PurePath(file_path or "").suffix.lower()
    return EXTENSION_LANGUAGES.get(suffix, UNKNOWN_LANGUAGE)


def syntax_for(language: str) -> LanguageSyntax:
    """Retorna a tabela de sintaxe da linguagem, vazia quando não configurada"""
    return LANGUAGE_SYNTAX.get(language, LanguageSyntax())


def extract_imports(text: str, language: str) -> List[str]:
    """Nomes de módulos importados, sem duplicatas, na ordem de aparição"""
    imports: List[str] = []
    seen = set()
    for pattern in syntax_for(language).import_patterns:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if name and name not in seen:
                seen.add(name)
                imports.append(name)
    return imports


def extract_first_name(text: str, pattern: Optional[Pattern]) -> str:
    if pattern is None:
        return ""
    match = pattern.search(text)
    return match.group(1) if match else ""
