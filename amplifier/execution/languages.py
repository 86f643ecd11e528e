"""
File extension to Judge0 CE language id mapping.
"""

from typing import Dict, Optional

PYTHON = 71

LANGUAGE_IDS: Dict[str, int] = {
    "py": PYTHON,        # Python 3.8.1
    "js": 63,            # JavaScript (Node.js 12.14.0)
    "mjs": 63,
    "ts": 74,            # TypeScript 3.7.4
    "java": 62,          # Java (OpenJDK 13.0.1)
    "c": 50,             # C (GCC 9.2.0)
    "cpp": 54,           # C++ (GCC 9.2.0)
    "cc": 54,
    "cxx": 54,
    "cs": 51,            # C# (Mono 6.6.0.161)
    "go": 60,            # Go 1.13.5
    "rb": 72,            # Ruby 2.7.0
    "rs": 73,            # Rust 1.40.0
    "php": 68,           # PHP 7.4.1
    "kt": 78,            # Kotlin 1.3.70
    "swift": 83,         # Swift 5.2.3
    "sh": 46,            # Bash 5.0.0
    "lua": 64,           # Lua 5.3.5
    "r": 80,             # R 4.0.0
    "scala": 81,         # Scala 2.13.2
    "hs": 61,            # Haskell (GHC 8.8.1)
    "pl": 85,            # Perl 5.28.1
    "sql": 82,           # SQL (SQLite 3.27.2)
}


def language_id_for(extension: Optional[str], default: int = PYTHON) -> int:
    if not extension:
        return default
    return LANGUAGE_IDS.get(extension.lower().lstrip("."), default)
