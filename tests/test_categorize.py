"""
Tests for diagnostic categorization and the advisory tables.
"""

import pytest

from tsfixer.categorize import SUGGESTIONS, categorize, error_code_details, suggest
from tsfixer.models import Category


class TestCategorize:

    @pytest.mark.parametrize('code,expected', [
        ('TS2322', Category.TYPE_MISMATCH),
        ('TS2532', Category.NULL_UNDEFINED),
        ('TS18048', Category.NULL_UNDEFINED),
        ('TS2339', Category.MISSING_PROPERTY),
        ('TS2304', Category.UNKNOWN_IDENTIFIER),
        ('TS1005', Category.SYNTAX_ERROR),
        ('TS2307', Category.IMPORT_EXPORT),
        ('TS6133', Category.IMPORT_EXPORT),
        ('TS2554', Category.INVALID_ARGUMENTS),
        ('TS2769', Category.FUNCTION_RETURN),
        ('TS2366', Category.OBJECT_PROPERTY),
        ('TS1308', Category.ASYNC_AWAIT),
    ])
    def test_known_codes(self, code, expected):
        assert categorize(code, 'irrelevant message') is expected

    def test_code_wins_over_message(self):
        assert categorize('TS2322', "Object is possibly 'undefined'.") is Category.TYPE_MISMATCH

    def test_lowercase_code(self):
        assert categorize('ts2322', '') is Category.TYPE_MISMATCH

    @pytest.mark.parametrize('message,expected', [
        ("'x' is possibly 'undefined'.", Category.NULL_UNDEFINED),
        ("Value may be null here", Category.NULL_UNDEFINED),
        ("Module has no exported member 'a'; check the export list", Category.IMPORT_EXPORT),
        ("Promise returned in function argument", Category.ASYNC_AWAIT),
    ])
    def test_message_fallback(self, message, expected):
        assert categorize('TS9999', message) is expected

    def test_unknown_code_and_message(self):
        assert categorize('TS9999', 'Something odd happened') is Category.OTHER

    def test_empty_inputs(self):
        assert categorize('', '') is Category.OTHER
        assert categorize(None, None) is Category.OTHER


class TestSuggestions:

    def test_every_category_has_hints(self):
        for category in Category:
            assert suggest(category)

    def test_returns_a_copy(self):
        hints = suggest(Category.TYPE_MISMATCH)
        hints.append('mutated')
        assert 'mutated' not in SUGGESTIONS[Category.TYPE_MISMATCH]


class TestErrorCodeDetails:

    def test_known_code(self):
        details = error_code_details('TS2322')
        assert details['code'] == 'TS2322'
        assert details['title'] == 'Type assignment error'
        assert details['documentation'].startswith('https://')

    def test_unknown_code_gets_generic_entry(self):
        details = error_code_details('TS12345')
        assert details['code'] == 'TS12345'
        assert details['title'] == 'TypeScript error'
