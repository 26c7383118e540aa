"""Tests for the match suggestion engine."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from bankrecon.domain.entities import (
    Installment,
    InstallmentStatus,
    MatchStatus,
    StatementLine,
    StatementStatus,
    UnmatchedMeta,
)
from bankrecon.domain.errors import NotFoundError
from bankrecon.domain.suggestion import (
    MAX_SUGGESTIONS,
    amount_matches,
    anchor_date,
    date_score,
    description_score,
    rank_candidates,
    score_candidate,
)

LINE_DATE = date(2025, 1, 10)


def make_line(amount="500.00", description="Aluguel Janeiro", transaction_date=LINE_DATE):
    return StatementLine(
        id=1,
        statement_id=1,
        position=1,
        transaction_date=transaction_date,
        description=description,
        amount=Decimal(amount),
        balance=None,
        document_number=None,
        fit_id=None,
        match_status=MatchStatus.UNMATCHED,
        match_meta=UnmatchedMeta(),
        matched_installment_id=None,
        matched_by=None,
        matched_at=None,
    )


def make_installment(
    installment_id=1, total="500.00", due_date=LINE_DATE, movement_date=None, description="Aluguel"
):
    return Installment(
        id=installment_id,
        journal_entry_id=installment_id,
        financial_account_id=1,
        number=1,
        total_amount=Decimal(total),
        due_date=due_date,
        movement_date=movement_date,
        status=InstallmentStatus.PENDING,
        payment_date=None,
        entry_description=description,
    )


class TestScoring:
    def test_date_score(self):
        assert date_score(LINE_DATE, LINE_DATE) == 30
        assert date_score(LINE_DATE, LINE_DATE + timedelta(days=1)) == 29
        assert date_score(LINE_DATE, LINE_DATE - timedelta(days=7)) == 23
        assert date_score(LINE_DATE, LINE_DATE + timedelta(days=30)) == 0
        assert date_score(LINE_DATE, LINE_DATE + timedelta(days=400)) == 0

    def test_description_score(self):
        assert description_score("PIX Aluguel Janeiro", "aluguel") == 30
        assert description_score("aluguel", "Aluguel Janeiro") == 30
        assert description_score("", "Aluguel") == 15
        assert description_score("Aluguel", None) == 15
        assert description_score("Mercado", "Aluguel") == 10

    def test_anchor_date_fallbacks(self):
        movement = date(2025, 1, 3)
        assert anchor_date(make_installment(due_date=LINE_DATE), date(2000, 1, 1)) == LINE_DATE
        assert anchor_date(make_installment(due_date=None, movement_date=movement), LINE_DATE) == movement
        assert anchor_date(make_installment(due_date=None), LINE_DATE) == LINE_DATE

    def test_same_day_matching_description_scores_100(self):
        assert score_candidate(make_line(), make_installment()) == 100

    def test_score_non_increasing_with_distance_and_clamped(self):
        line = make_line(description="Mercado")
        previous = None
        for days in range(0, 45):
            installment = make_installment(due_date=LINE_DATE + timedelta(days=days))
            score = score_candidate(line, installment)
            assert 50 <= score <= 100
            if previous is not None:
                assert score <= previous
            previous = score

    def test_amount_tolerance(self):
        assert amount_matches(Decimal("-500.00"), Decimal("500.00"))
        assert amount_matches(Decimal("500.01"), Decimal("500.00"))
        assert not amount_matches(Decimal("500.02"), Decimal("500.00"))


class TestRankCandidates:
    def test_filters_by_amount_and_orders_by_confidence(self):
        line = make_line(description="PIX 123")
        installments = [
            make_installment(1, due_date=LINE_DATE + timedelta(days=10)),
            make_installment(2, total="499.00"),
            make_installment(3, due_date=LINE_DATE),
        ]

        ranked = rank_candidates(line, installments)

        assert [s.installment_id for s in ranked] == [3, 1]
        assert ranked[0].confidence == 90
        assert ranked[1].confidence == 80

    def test_keeps_top_five_and_input_order_on_ties(self):
        line = make_line()
        installments = [make_installment(i) for i in range(1, 9)]

        ranked = rank_candidates(line, installments)

        assert len(ranked) == MAX_SUGGESTIONS
        assert [s.installment_id for s in ranked] == [1, 2, 3, 4, 5]

    def test_suggestion_fields(self):
        suggestion = rank_candidates(make_line(), [make_installment(7)])[0]

        assert suggestion.installment_id == 7
        assert suggestion.journal_entry_id == 7
        assert suggestion.entry_description == "Aluguel"
        assert suggestion.due_date == LINE_DATE
        assert suggestion.installment_number == 1


class TestSuggestMatches:
    def test_exact_same_day_match_is_suggested(
        self, import_text, sample_account, installment_service, suggestion_service, temp_db
    ):
        statement = import_text(
            sample_account.id, "date,description,amount\n2025-01-10,Aluguel Janeiro,500.00\n"
        )
        installment_id = installment_service.create_installment(
            sample_account.id, "Aluguel", Decimal("500.00"), due_date=LINE_DATE
        )

        result = suggestion_service.suggest_matches(statement.id)

        assert result.status == StatementStatus.IMPORTED
        line = temp_db.list_statement_lines(statement.id)[0]
        assert line.match_status == MatchStatus.SUGGESTED
        assert line.suggestions[0].installment_id == installment_id
        assert line.suggestions[0].confidence == 100

    def test_low_confidence_stays_unmatched_but_keeps_candidates(
        self, import_text, sample_account, installment_service, suggestion_service, temp_db
    ):
        statement = import_text(
            sample_account.id, "date,description,amount\n2025-01-10,Mercado,-80.00\n"
        )
        installment_service.create_installment(
            sample_account.id, "Energia", Decimal("80.00"), due_date=date(2025, 2, 28)
        )

        suggestion_service.suggest_matches(statement.id)

        line = temp_db.list_statement_lines(statement.id)[0]
        assert line.match_status == MatchStatus.UNMATCHED
        assert len(line.suggestions) == 1
        assert line.suggestions[0].confidence == 60

    def test_ineligible_installments_are_not_candidates(
        self,
        import_text,
        sample_account,
        other_account,
        installment_service,
        suggestion_service,
        temp_db,
    ):
        statement = import_text(
            sample_account.id, "date,description,amount\n2025-01-10,Aluguel,500.00\n"
        )
        paid = installment_service.create_installment(
            sample_account.id, "Aluguel", Decimal("500.00"), due_date=LINE_DATE
        )
        installment_service.pay_installment(paid, LINE_DATE)
        canceled = installment_service.create_entry(sample_account.id, "Aluguel")
        installment_service.add_installment(canceled, Decimal("500.00"), due_date=LINE_DATE)
        installment_service.cancel_entry(canceled)
        installment_service.create_installment(
            other_account.id, "Aluguel", Decimal("500.00"), due_date=LINE_DATE
        )

        suggestion_service.suggest_matches(statement.id)

        line = temp_db.list_statement_lines(statement.id)[0]
        assert line.match_status == MatchStatus.UNMATCHED
        assert line.suggestions == ()

    def test_rerun_is_idempotent_and_skips_confirmed(
        self,
        import_text,
        sample_account,
        installment_service,
        suggestion_service,
        resolution_service,
        op_context,
        temp_db,
    ):
        statement = import_text(
            sample_account.id,
            "date,description,amount\n2025-01-10,Aluguel,500.00\n2025-01-11,Aluguel,500.00\n",
        )
        first = installment_service.create_installment(
            sample_account.id, "Aluguel", Decimal("500.00"), due_date=LINE_DATE
        )
        suggestion_service.suggest_matches(statement.id)
        before = temp_db.list_statement_lines(statement.id)

        suggestion_service.suggest_matches(statement.id)
        assert temp_db.list_statement_lines(statement.id) == before

        resolution_service.confirm_match(before[0].id, first, LINE_DATE, op_context)
        suggestion_service.suggest_matches(statement.id)

        confirmed, other = temp_db.list_statement_lines(statement.id)
        assert confirmed.match_status == MatchStatus.CONFIRMED
        assert confirmed.matched_installment_id == first
        # the only installment is paid now, so nothing is left to suggest
        assert other.match_status == MatchStatus.UNMATCHED
        assert other.suggestions == ()

    def test_rerun_keeps_closed_statement_reconciled(
        self,
        sample_statement,
        sample_account,
        suggestion_service,
        resolution_service,
        period_close_service,
        op_context,
        temp_db,
    ):
        for line in temp_db.list_statement_lines(sample_statement.id):
            resolution_service.ignore_line(line.id, op_context)
        period_close_service.close_period(
            sample_account.id,
            date(2025, 1, 1),
            date(2025, 1, 31),
            Decimal("3499.50"),
            Decimal("3499.50"),
            op_context,
        )

        result = suggestion_service.suggest_matches(sample_statement.id)

        assert result.status == StatementStatus.RECONCILED
        assert temp_db.get_statement(sample_statement.id).status == StatementStatus.RECONCILED

    def test_unknown_statement(self, suggestion_service):
        with pytest.raises(NotFoundError):
            suggestion_service.suggest_matches(404)
