"""
Tests for multi-document consolidation, homogeneity and reconciliation.
"""
from decimal import Decimal

import pytest

from src.common.models import BalanceAnchor, BalanceKind, StatementDocument
from src.core.consolidator import StatementConsolidator
from src.core.homogeneity import classify_source, validate_homogeneity
from src.core.reconciler import BalanceReconciler
from src.parsing.config.settings import StatementConfig
from src.parsing.exceptions import CurrencyMismatch

from conftest import make_tx


def anchor(kind, amount, type_code='Cr'):
    return BalanceAnchor(kind=kind, amount=amount, type_code=type_code)


@pytest.fixture
def doc_a():
    """January: opening 500, credit 100, available 600."""
    return StatementDocument(
        opening=anchor(BalanceKind.OPENING, '500.00'),
        transactions=(make_tx('1/1/2024', '100.00', 'Cr', 'A1'),),
        closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '600.00')},
        source_file='enero.xml',
    )


@pytest.fixture
def doc_b():
    """Following period: opening 600, debit 50, available 550."""
    return StatementDocument(
        opening=anchor(BalanceKind.OPENING, '600.00'),
        transactions=(make_tx('1/5/2024', '50.00', 'Db', 'B1'),),
        closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '550.00')},
        source_file='mayo.xml',
    )


@pytest.fixture
def consolidator():
    return StatementConsolidator()


@pytest.fixture
def reconciler():
    return BalanceReconciler()


# =============================================================================
# TEST: homogeneity
# =============================================================================

class TestHomogeneity:

    @pytest.mark.parametrize("name,expected", [
        ("extracto_CUP_enero.xml", "CUP"),
        ("MLC-2024-01.xml", "MLC"),
        ("cup.xml", "CUP"),
        ("estado_cuenta.xml", None),
        ("CUPON.xml", None),
        ("CUP_MLC.xml", None),
        ("", None),
    ])
    def test_classify_source(self, name, expected):
        assert classify_source(name) == expected

    def test_same_marker_accepted(self):
        result = validate_homogeneity(["CUP_enero.xml", "CUP_febrero.xml"])
        assert result.accepted
        assert result.markers == ("CUP",)

    def test_undetermined_never_rejects(self):
        assert validate_homogeneity(["CUP_enero.xml", "febrero.xml"]).accepted
        assert validate_homogeneity(["a.xml", "b.xml"]).accepted

    def test_mixed_markers_rejected(self):
        result = validate_homogeneity(["CUP_enero.xml", "MLC_enero.xml"])
        assert not result.accepted
        assert set(result.markers) == {"CUP", "MLC"}
        assert result.reason

    def test_configured_markers(self):
        config = StatementConfig(currency_markers=["USD", "EUR"])
        assert not validate_homogeneity(["usd.xml", "eur.xml"], config).accepted
        assert validate_homogeneity(["CUP.xml", "MLC.xml"], config).accepted


# =============================================================================
# TEST: consolidation
# =============================================================================

class TestConsolidate:

    def test_single_document_passthrough(self, consolidator, doc_a):
        merged = consolidator.consolidate([doc_a])
        assert merged.opening == doc_a.opening
        assert merged.transactions == doc_a.transactions
        assert merged.closings == doc_a.closings
        assert merged.sources == ('enero.xml',)

    def test_empty_input(self, consolidator):
        with pytest.raises(ValueError):
            consolidator.consolidate([])

    def test_source_count_mismatch(self, consolidator, doc_a, doc_b):
        with pytest.raises(ValueError):
            consolidator.consolidate([doc_a, doc_b], ['only-one.xml'])

    def test_merge_example(self, consolidator, reconciler, doc_a, doc_b):
        merged = consolidator.consolidate([doc_a, doc_b])

        assert merged.opening.amount == '500.00'
        assert merged.closing(BalanceKind.CLOSING_AVAILABLE).amount == '550.00'
        assert [t.reference_current for t in merged.transactions] == ['A1', 'B1']

        report = reconciler.reconcile(merged)
        assert report.calculated_closing == Decimal('550.00')
        assert report.is_valid is True
        assert report.difference == 0

    def test_tie_break_is_order_insensitive(self, consolidator, doc_a, doc_b):
        forward = consolidator.consolidate([doc_a, doc_b])
        backward = consolidator.consolidate([doc_b, doc_a])

        assert forward.opening == backward.opening == doc_a.opening
        assert forward.closings == backward.closings == doc_b.closings
        assert [t.reference_current for t in backward.transactions] == ['A1', 'B1']

    def test_ties_use_upload_order(self, consolidator):
        first = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '1.00'),
            transactions=(make_tx('10/01/2024', '5.00', 'Cr', 'X'),),
            closings={BalanceKind.CLOSING_BOOK: anchor(BalanceKind.CLOSING_BOOK, '6.00')},
        )
        second = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '2.00'),
            transactions=(make_tx('10/01/2024', '5.00', 'Cr', 'Y'),),
            closings={BalanceKind.CLOSING_BOOK: anchor(BalanceKind.CLOSING_BOOK, '7.00')},
        )
        merged = consolidator.consolidate([first, second], ['uno.xml', 'dos.xml'])

        assert merged.opening.amount == '1.00'
        assert merged.closing(BalanceKind.CLOSING_BOOK).amount == '6.00'
        # Equal dates keep upload order
        assert [t.reference_current for t in merged.transactions] == ['X', 'Y']

    def test_sort_uses_day_month_year(self, consolidator):
        doc1 = StatementDocument(
            opening=None,
            transactions=(make_tx('02/03/2024', '1.00', 'Cr', 'MARCH'),),
        )
        doc2 = StatementDocument(
            opening=None,
            transactions=(make_tx('03/02/2024', '1.00', 'Cr', 'FEB'),),
        )
        merged = consolidator.consolidate([doc1, doc2], ['a.xml', 'b.xml'])
        assert [t.reference_current for t in merged.transactions] == ['FEB', 'MARCH']

    def test_per_document_edges_drive_selection(self, consolidator):
        """Selection looks at each document's own first/last rows, pre-sort."""
        early_start = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '100.00'),
            transactions=(make_tx('01/01/2024', '1.00'), make_tx('20/01/2024', '1.00')),
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '102.00')},
        )
        late_end = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '200.00'),
            transactions=(make_tx('05/01/2024', '1.00'), make_tx('31/01/2024', '1.00')),
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '202.00')},
        )
        merged = consolidator.consolidate([late_end, early_start], ['a.xml', 'b.xml'])
        assert merged.opening.amount == '100.00'
        assert merged.closing(BalanceKind.CLOSING_AVAILABLE).amount == '202.00'

    def test_document_without_transactions_ranks_last(self, consolidator, doc_a):
        empty = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '999.00'),
            transactions=(),
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '999.00')},
        )
        merged = consolidator.consolidate([empty, doc_a], ['vacio.xml', 'enero.xml'])
        assert merged.opening == doc_a.opening
        assert merged.closings == doc_a.closings

    def test_currency_mismatch(self, consolidator, doc_a, doc_b):
        with pytest.raises(CurrencyMismatch) as exc:
            consolidator.consolidate([doc_a, doc_b], ['CUP_enero.xml', 'MLC_mayo.xml'])
        assert set(exc.value.markers) == {'CUP', 'MLC'}

    def test_merged_sequence_is_fresh(self, consolidator, doc_a, doc_b):
        merged = consolidator.consolidate([doc_a, doc_b])
        assert merged.transactions is not doc_a.transactions
        assert len(doc_a.transactions) == 1


# =============================================================================
# TEST: reconciliation
# =============================================================================

class TestReconcile:

    def test_discrepancy_is_reported(self, reconciler, doc_a):
        broken = StatementDocument(
            opening=doc_a.opening,
            transactions=doc_a.transactions,
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '700.00')},
        )
        report = reconciler.reconcile(broken)
        assert report.is_valid is False
        assert report.difference == Decimal('-100.00')
        assert report.reported_closing == Decimal('700.00')
        assert 'Divergencia' in report.message

    def test_within_tolerance(self, reconciler, doc_a):
        close = StatementDocument(
            opening=doc_a.opening,
            transactions=doc_a.transactions,
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '600.01')},
        )
        assert reconciler.reconcile(close).is_valid is True

    def test_book_fallback(self, reconciler, doc_a):
        book_only = StatementDocument(
            opening=doc_a.opening,
            transactions=doc_a.transactions,
            closings={BalanceKind.CLOSING_BOOK: anchor(BalanceKind.CLOSING_BOOK, '600.00')},
        )
        report = reconciler.reconcile(book_only)
        assert report.is_valid is True
        assert report.reported_closing == Decimal('600.00')

    def test_no_reported_closing(self, reconciler, doc_a):
        report = reconciler.reconcile(StatementDocument(opening=doc_a.opening, transactions=doc_a.transactions))
        assert report.is_valid is None
        assert report.difference is None
        assert report.calculated_closing == Decimal('600.00')

    def test_missing_opening_counts_as_zero(self, reconciler):
        doc = StatementDocument(
            opening=None,
            transactions=(make_tx('01/01/2024', '10.00', 'Hb'), make_tx('02/01/2024', '4.00', 'Dr')),
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '6.00')},
        )
        report = reconciler.reconcile(doc)
        assert report.opening == 0
        assert report.total_credits == Decimal('10.00')
        assert report.total_debits == Decimal('4.00')
        assert report.is_valid is True

    def test_debit_coded_balances_are_negative(self, reconciler):
        doc = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '20.00', 'Dr'),
            transactions=(make_tx('01/01/2024', '5.00', 'Cr'),),
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '15.00', 'Db')},
        )
        report = reconciler.reconcile(doc)
        assert report.calculated_closing == Decimal('-15.00')
        assert report.is_valid is True

    def test_custom_codes_sign_balances(self):
        config = StatementConfig(credit_codes=('c',), debit_codes=('d',))
        doc = StatementDocument(
            opening=anchor(BalanceKind.OPENING, '20.00', 'D'),
            transactions=(make_tx('01/01/2024', '5.00', 'C'),),
            closings={BalanceKind.CLOSING_AVAILABLE: anchor(BalanceKind.CLOSING_AVAILABLE, '15.00', 'D')},
        )
        report = BalanceReconciler(config).reconcile(doc)
        assert report.opening == Decimal('-20.00')
        assert report.calculated_closing == Decimal('-15.00')
        assert report.reported_closing == Decimal('-15.00')
        assert report.is_valid is True

    def test_unknown_type_codes_are_ignored(self, reconciler, doc_a):
        doc = StatementDocument(
            opening=doc_a.opening,
            transactions=doc_a.transactions + (make_tx('02/01/2024', '999.00', 'XX'),),
            closings=doc_a.closings,
        )
        assert reconciler.reconcile(doc).is_valid is True
