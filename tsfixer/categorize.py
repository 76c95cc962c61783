"""
Diagnostic categorizer.

Maps a compiler code/message pair to a Category. Codes are checked first;
when a code is unknown, a few message substrings decide. Suggestions are
advisory text for reports only.
"""

from typing import Dict, List, Tuple

from tsfixer.models import Category


# ============================================================================
# CODE TABLES
# ============================================================================

CODE_CATEGORIES: Dict[str, Category] = {
    'TS2322': Category.TYPE_MISMATCH,
    'TS2345': Category.TYPE_MISMATCH,
    'TS2531': Category.NULL_UNDEFINED,
    'TS2532': Category.NULL_UNDEFINED,
    'TS2533': Category.NULL_UNDEFINED,
    'TS18047': Category.NULL_UNDEFINED,
    'TS18048': Category.NULL_UNDEFINED,
    'TS2551': Category.MISSING_PROPERTY,
    'TS2339': Category.MISSING_PROPERTY,
    'TS2304': Category.UNKNOWN_IDENTIFIER,
    'TS1005': Category.SYNTAX_ERROR,
    'TS1128': Category.SYNTAX_ERROR,
    'TS2307': Category.IMPORT_EXPORT,
    'TS2305': Category.IMPORT_EXPORT,
    'TS2300': Category.IMPORT_EXPORT,
    'TS6133': Category.IMPORT_EXPORT,
    'TS6192': Category.IMPORT_EXPORT,
    'TS2554': Category.INVALID_ARGUMENTS,
    'TS2555': Category.INVALID_ARGUMENTS,
    'TS2556': Category.INVALID_ARGUMENTS,
    'TS2769': Category.FUNCTION_RETURN,
    'TS2559': Category.FUNCTION_RETURN,
    'TS2366': Category.OBJECT_PROPERTY,
    'TS2536': Category.OBJECT_PROPERTY,
    'TS2612': Category.ASYNC_AWAIT,
    'TS1308': Category.ASYNC_AWAIT,
}

# Checked in order when the code is not in CODE_CATEGORIES
MESSAGE_FALLBACKS: List[Tuple[Tuple[str, ...], Category]] = [
    (('undefined', 'null'), Category.NULL_UNDEFINED),
    (('import', 'export'), Category.IMPORT_EXPORT),
    (('async', 'await', 'Promise'), Category.ASYNC_AWAIT),
]

TS_DOCS = 'https://www.typescriptlang.org/docs/handbook'

ERROR_CODE_DETAILS: Dict[str, Dict[str, str]] = {
    'TS2322': {
        'title': 'Type assignment error',
        'description': 'Type is not assignable to the target type',
        'documentation': f'{TS_DOCS}/2/everyday-types.html',
    },
    'TS2345': {
        'title': 'Argument type error',
        'description': 'Argument is not assignable to parameter type',
        'documentation': f'{TS_DOCS}/2/functions.html',
    },
    'TS2531': {
        'title': 'Object is possibly null',
        'description': 'Object might be null when accessing a property',
        'documentation': f'{TS_DOCS}/2/everyday-types.html#null-and-undefined',
    },
    'TS2532': {
        'title': 'Object is possibly undefined',
        'description': 'Object might be undefined when accessing a property',
        'documentation': f'{TS_DOCS}/2/everyday-types.html#null-and-undefined',
    },
    'TS2339': {
        'title': 'Property does not exist',
        'description': 'Property does not exist on the given type',
        'documentation': f'{TS_DOCS}/2/objects.html',
    },
    'TS2304': {
        'title': 'Cannot find name',
        'description': 'Referenced name could not be found',
        'documentation': f'{TS_DOCS}/modules.html',
    },
    'TS1005': {
        'title': 'Syntax error',
        'description': 'Unexpected token in the code',
        'documentation': f'{TS_DOCS}/2/basic-types.html',
    },
    'TS2307': {
        'title': 'Cannot find module',
        'description': 'Module not found or path is incorrect',
        'documentation': f'{TS_DOCS}/modules.html',
    },
    'TS2300': {
        'title': 'Duplicate identifier',
        'description': 'The same name is declared or imported more than once',
        'documentation': f'{TS_DOCS}/modules.html',
    },
    'TS2554': {
        'title': 'Expected arguments',
        'description': 'Function called with incorrect number of arguments',
        'documentation': f'{TS_DOCS}/2/functions.html',
    },
    'TS6133': {
        'title': 'Declared but never read',
        'description': 'A local or imported name is never used',
        'documentation': f'{TS_DOCS}/compiler-options.html',
    },
    'TS6192': {
        'title': 'All imports unused',
        'description': 'Every binding of an import declaration is unused',
        'documentation': f'{TS_DOCS}/compiler-options.html',
    },
}

SUGGESTIONS: Dict[Category, List[str]] = {
    Category.TYPE_MISMATCH: [
        "Check if you're passing the correct type of value",
        "Use type assertions if you're sure the type is correct (e.g., `as Type`)",
        "Update the expected type in the function/variable declaration",
    ],
    Category.NULL_UNDEFINED: [
        "Use optional chaining (e.g., `obj?.prop`) to safely access potentially undefined properties",
        "Add null/undefined checks before accessing properties",
        "Use a default value with the nullish coalescing operator (e.g., `value ?? defaultValue`)",
    ],
    Category.MISSING_PROPERTY: [
        "Check for typos in property name",
        "Make sure the object has been initialized with the required properties",
        "Update the type definition if the property should be optional",
    ],
    Category.UNKNOWN_IDENTIFIER: [
        "Import the required module or type",
        "Check for typos in variable/type name",
        "Define the variable or type before using it",
    ],
    Category.SYNTAX_ERROR: [
        "Check for missing semicolons, brackets, or other syntax elements",
        "Verify that JSX syntax is properly formatted",
    ],
    Category.IMPORT_EXPORT: [
        "Check that the imported module exists",
        "Verify that the exported name matches the import",
        "Make sure the export is properly defined in the source module",
    ],
    Category.INVALID_ARGUMENTS: [
        "Compare the call with the function signature",
        "Check for missing or extra arguments",
    ],
    Category.FUNCTION_RETURN: [
        "Check which overload the call is expected to match",
        "Verify the declared return type against what the function returns",
    ],
    Category.OBJECT_PROPERTY: [
        "Make sure every code path returns a value",
        "Check that the index type is valid for the object",
    ],
    Category.ASYNC_AWAIT: [
        "Mark the enclosing function as `async` before using `await`",
        "Check whether a Promise needs to be awaited before use",
    ],
    Category.OTHER: [
        "Review the TypeScript documentation for this error code",
        "Check for similar issues in the codebase that have been resolved",
    ],
}


# ============================================================================
# API
# ============================================================================

def categorize(code: str, message: str) -> Category:
    """Map a diagnostic code and message to a Category."""
    category = CODE_CATEGORIES.get((code or '').upper())
    if category is not None:
        return category

    message = message or ''
    for needles, fallback in MESSAGE_FALLBACKS:
        if any(needle in message for needle in needles):
            return fallback

    return Category.OTHER


def suggest(category: Category) -> List[str]:
    """Human-readable remediation hints for a category. Never drives edits."""
    return list(SUGGESTIONS.get(category, SUGGESTIONS[Category.OTHER]))


def error_code_details(code: str) -> Dict[str, str]:
    """Title, description and documentation link for a diagnostic code."""
    details = ERROR_CODE_DETAILS.get(code)
    if details:
        return {**details, 'code': code}
    return {
        'title': 'TypeScript error',
        'description': 'Unknown TypeScript error code',
        'code': code,
        'documentation': 'https://www.typescriptlang.org/docs/',
    }
