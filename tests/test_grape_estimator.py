"""ぶどう逆算（収支式）のテスト"""

import math

import pytest

from config.machines import MACHINES, STRATEGIES
from analysis.grape_estimator import (
    format_int, format_prob, number_or, reconcile, reconcile_all, session_numbers,
)


class TestNumberOr:

    def test_numbers_pass_through(self):
        assert number_or(3000, 0) == 3000
        assert number_or(-12.5, 0) == -12.5

    def test_strings_with_commas(self):
        assert number_or('3,000', 0) == 3000
        assert number_or(' -1,250 ', 0) == -1250

    def test_malformed_falls_back(self):
        assert number_or('abc', 0) == 0
        assert number_or('', 7) == 7
        assert number_or(None, 0) == 0

    def test_non_finite_falls_back(self):
        assert number_or(float('inf'), 0) == 0
        assert number_or('nan', 0) == 0
        assert number_or('1e400', 0) == 0

    def test_huge_int_falls_back(self):
        assert number_or(10**400, 0) == 0
        assert number_or(-10**400, 5) == 5

    def test_session_numbers(self):
        assert session_numbers({'games': '3000', 'big': 10, 'reg': 'x', 'diff': '-500'}) == (3000, 10, 0, -500)
        assert session_numbers(None) == (0, 0, 0, 0)


class TestReconcile:

    def test_reference_scenario(self, my_juggler, cherry100):
        stats = {'games': 3000, 'big': 10, 'reg': 10, 'diff': 0}
        res = reconcile(stats, my_juggler, cherry100)

        assert res['coin_in'] == pytest.approx(7766.78, abs=0.01)
        assert res['out_jackpots'] == pytest.approx(3345)
        assert res['out_others'] == pytest.approx(166.67, abs=0.01)
        assert res['out_known'] == pytest.approx(3511.67, abs=0.01)
        assert res['grapes_count'] == pytest.approx(531.89, abs=0.01)
        assert res['grape_prob'] == pytest.approx(5.64, abs=0.01)
        assert res['reconciled'] is True
        assert format_prob(res['grape_prob']) == '1/5.64'
        assert format_int(res['grapes_count']) == '532'

    def test_string_inputs_match_numbers(self, my_juggler, cherry100):
        a = reconcile({'games': '3,000', 'big': '10', 'reg': '10', 'diff': '0'}, my_juggler, cherry100)
        b = reconcile({'games': 3000, 'big': 10, 'reg': 10, 'diff': 0}, my_juggler, cherry100)
        assert a == b

    @pytest.mark.parametrize('machine_key', list(MACHINES))
    def test_zero_games_gives_no_grapes(self, machine_key):
        for s in STRATEGIES:
            res = reconcile({'games': 0, 'big': 0, 'reg': 0, 'diff': 0}, MACHINES[machine_key], s)
            assert res['grapes_count'] == 0
            assert math.isinf(res['grape_prob'])
            assert format_prob(res['grape_prob']) == '-'

    def test_negative_balance_is_clamped(self, my_juggler, cherry100):
        # 大きく勝っているのにG数が少ない → 収支が合わない
        res = reconcile({'games': 100, 'big': 20, 'reg': 0, 'diff': -5000}, my_juggler, cherry100)
        assert res['grapes_count'] == 0
        assert math.isinf(res['grape_prob'])
        assert res['reconciled'] is False

    def test_malformed_inputs_do_not_raise(self, my_juggler):
        stats = {'games': 'abc', 'big': None, 'reg': float('nan'), 'diff': 'x'}
        for s in STRATEGIES:
            res = reconcile(stats, my_juggler, s)
            assert res['grapes_count'] == 0

    def test_huge_games_does_not_raise(self, my_juggler):
        for s in STRATEGIES:
            res = reconcile({'games': 10**400, 'big': 10**400, 'reg': 1, 'diff': 0}, my_juggler, s)
            assert res['grapes_count'] == 0
            assert math.isinf(res['grape_prob'])

    def test_non_finite_balance_is_not_reconciled(self, my_juggler, cherry100):
        # 3 × -1e308 は -inf になる
        res = reconcile({'games': -1e308, 'big': 0, 'reg': 0, 'diff': 0}, my_juggler, cherry100)
        assert res['grapes_count'] == 0
        assert res['reconciled'] is False

    def test_bad_denominator_does_not_raise(self, cherry100):
        preset = dict(MACHINES['マイジャグラーV'], replay=0, cherry='oops')
        res = reconcile({'games': 3000, 'big': 10, 'reg': 10, 'diff': 0}, preset, cherry100)
        assert math.isfinite(res['grapes_count'])

    @pytest.mark.parametrize('machine_key', list(MACHINES))
    def test_diff_increase_never_decreases_grapes(self, machine_key):
        preset = MACHINES[machine_key]
        for s in STRATEGIES:
            prev = -1
            for diff in range(-3000, 3001, 250):
                res = reconcile({'games': 4000, 'big': 15, 'reg': 12, 'diff': diff}, preset, s)
                assert res['grapes_count'] >= prev
                prev = res['grapes_count']

    def test_is_deterministic_and_does_not_mutate(self, my_juggler, cherry100):
        stats = {'games': '5000', 'big': '20', 'reg': '18', 'diff': '+800'}
        before = (dict(stats), dict(my_juggler), dict(cherry100['capture']))
        first = reconcile(stats, my_juggler, cherry100)
        second = reconcile(stats, my_juggler, cherry100)
        assert first == second
        assert (stats, my_juggler, cherry100['capture']) == before

    def test_more_capture_means_fewer_grapes(self, my_juggler):
        stats = {'games': 6000, 'big': 25, 'reg': 20, 'diff': 500}
        by_key = {r['key']: r['result'] for r in reconcile_all(stats, my_juggler)}
        assert by_key['full']['grapes_count'] < by_key['cherry100']['grapes_count']


class TestReconcileAll:

    def test_one_result_per_strategy_in_order(self, my_juggler):
        results = reconcile_all({'games': 3000, 'big': 10, 'reg': 10, 'diff': 0}, my_juggler)
        assert [r['key'] for r in results] == [s['key'] for s in STRATEGIES]
        assert [r['label'] for r in results] == [s['label'] for s in STRATEGIES]

    def test_results_are_independent_of_order(self, my_juggler):
        stats = {'games': 3000, 'big': 10, 'reg': 10, 'diff': 0}
        forward = {r['key']: r['result'] for r in reconcile_all(stats, my_juggler)}
        backward = {r['key']: r['result'] for r in reconcile_all(stats, my_juggler, list(reversed(STRATEGIES)))}
        assert forward == backward


class TestFormatting:

    def test_format_int(self):
        assert format_int(1234.4) == '1,234'
        assert format_int(0) == '0'
        assert format_int(math.inf) == '-'
        assert format_int(float('nan')) == '-'

    def test_format_prob(self):
        assert format_prob(6.0234) == '1/6.02'
        assert format_prob(0) == '-'
        assert format_prob(-3) == '-'
        assert format_prob(math.inf) == '-'
