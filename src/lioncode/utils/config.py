"""
Configuration constants used throughout LionCode
"""

import os
import tempfile

# Parser configuration (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "lioncode_parser.cache")
GRAMMAR_FILE_NAME = "grammar.lark"

# Source files
DEFAULT_SOURCE_NAME = "<input>"
DEFAULT_FILE_ENCODING = "utf-8"

# String literals: -text- with $name / $(expr) interpolation
INTERPOLATION_MARKER = "$"

# Boolean literals
BOOLEAN_TRUE_LITERAL = "true"
BOOLEAN_FALSE_LITERAL = "false"

# Code generation
DEFAULT_TARGET = "js"
JS_INDENT = "  "
RENAMED_SUFFIX_START = 2

# Debug dumps (set LIONCODE_DUMP_AST=1)
DUMP_AST_ENV_VAR = "LIONCODE_DUMP_AST"
DUMP_DIR_NAME = "ast_dumps"

# Words the grammar uses as keywords; never valid as declared names
RESERVED_WORDS = frozenset({
    "roar", "ignite", "serve", "if", "else", "otherwise", "Prowl", "in",
    "range", "break", BOOLEAN_TRUE_LITERAL, BOOLEAN_FALSE_LITERAL, "and", "or",
})
