import itertools as it, operator as op, functools as ft
from pathlib import Path
import unittest

from . import _common as c

order, StopOrder = c.gn.order, c.gn.order.StopOrder


class OrderCaseTests(unittest.TestCase):
	'Test methods for this class are generated from YAML cases below.'

	def check_case(self, name, test):
		route_dirs = c.route_directions(name, test.patterns)
		trip = c.trip(name, test.trip, direction_id=test.get('direction_id'))
		order_by_time = bool(test.get('order_by_time'))

		if test.get('error'):
			with self.assertRaises(order.UnresolvableStopOrder) as ctx:
				order.resolve(route_dirs, trip.stops, trip, order_by_time=order_by_time)
			err = ctx.exception
			self.assertEqual(err.bucket.id, test.error.bucket)
			self.assertEqual(err.stop, test.error.stop)
			self.assertEqual(err.trip_id, name)
			self.assertIn(str(test.error.stop), str(err))
			return

		bucket, ordered = order.resolve(route_dirs, trip.stops, trip, order_by_time=order_by_time)
		self.assertEqual(bucket.id, test.bucket)
		self.assertEqual(c.stop_keys(ordered), list(test.order))
		if test.get('ranks'):
			self.assertEqual(list(st.rank for st in ordered), list(map(tuple, test.ranks)))
		self.assertEqual(list(st.stopidx for st in ordered), list(range(len(ordered))))
		self.assertTrue(all(st.bucket is bucket for st in ordered))

		# Same result for the bucket alone, and original stop-times are not modified
		self.assertEqual(
			c.stop_keys(order.order(bucket, trip.stops, order_by_time=order_by_time)),
			c.stop_keys(ordered) )
		self.assertTrue(all(st.rank is None for st in trip.stops))

def _add_case_tests():
	tests = c.load_test_data(Path(__file__).parent, Path(__file__).stem, 'cases')
	for name in tests:
		test_func = lambda self, name=name: self.check_case(name, tests[name])
		setattr(OrderCaseTests, 'test_{}'.format(name.replace('-', '_')), test_func)
_add_case_tests()


class OrderPropertyTests(unittest.TestCase):

	pattern = list('ABCDE')

	def setUp(self):
		self.route_dirs = c.route_directions('R', [
			dict(id=0, name='fwd', stops=self.pattern),
			dict(id=1, name='back', stops=list(reversed(self.pattern))) ])
		self.bucket = self.route_dirs.buckets[0]

	def ordered(self, stops):
		return order.order(self.bucket, c.stop_times('t', stops))

	def test_unique_stop_rank_is_pattern_position(self):
		for stops in [
				[('A', '08:00'), ('C', '08:05'), ('E', '08:10')],
				[('B', '08:00'), ('D', '08:05')],
				[('A', '08:00'), ('X', '08:02'), ('C', '08:05'), ('Y', '08:06'), ('E', '08:10')],
				[('A', '08:00'), ('D', '08:05'), ('B', '08:05'), ('C', '08:05')] ]:
			for st in self.ordered(stops):
				if st.key not in self.pattern: continue
				self.assertEqual(st.rank[0], self.pattern.index(st.key), [stops, st])

	def test_monotonic_ranks(self):
		ordered = self.ordered([
			('X', None), ('A', '08:00'), ('C', '08:05'), ('B', '08:05'),
			('Y', '08:06'), ('Y', '08:07'), ('D', '08:10'), ('E', None) ])
		ranks = list(st.rank for st in ordered)
		self.assertEqual(ranks, sorted(ranks))
		self.assertEqual(c.stop_keys(ordered), list('XABCYYDE'))

	def test_idempotence(self):
		stops = [('A', '08:00'), ('B', '08:05'), ('X', '08:06'), ('D', '08:10')]
		ordered = self.ordered(stops)
		self.assertEqual(c.stop_keys(ordered), list('ABXD'))
		self.assertEqual(list(st.seq for st in ordered), [1, 2, 3, 4])

		stops = [('A', '08:00'), ('C', '08:05'), ('B', '08:05'), ('D', '08:10')]
		ordered = self.ordered(stops)
		reordered = order.order(self.bucket, ordered)
		self.assertEqual(c.stop_keys(reordered), c.stop_keys(ordered))
		self.assertEqual(list(st.rank for st in reordered), list(st.rank for st in ordered))

	def test_failure_names_route_bucket_and_stop(self):
		trip = c.trip('t-fail', [('A', '08:00'), ('D', '08:05'), ('B', '08:10')])
		with self.assertRaises(order.UnresolvableStopOrder) as ctx:
			order.order(self.bucket, trip.stops, trip_id=trip.trip_id)
		err = ctx.exception
		self.assertEqual((err.route_id, err.bucket, err.stop), ('R', self.bucket, 'B'))
		self.assertIsInstance(err, c.gn.u.FatalFeedError)
		for v in 'R', 'fwd', 'B', 't-fail': self.assertIn(v, str(err))

	def test_no_anchors_is_failure(self):
		with self.assertRaises(order.UnresolvableStopOrder):
			self.ordered([('X', '08:00'), ('Y', '08:05')])

	def test_compare_early_same_trip(self):
		ordered = self.ordered([('A', '08:00'), ('C', '08:05'), ('B', '08:05'), ('D', '08:10')])
		a, b, c_, d = ordered
		self.assertEqual(c.stop_keys([b, c_]), ['B', 'C'])
		self.assertIs(order.compare_early(self.bucket, b, c_), StopOrder.before)
		self.assertIs(order.compare_early(self.bucket, d, a), StopOrder.after)
		self.assertIs(order.compare_early(self.bucket, b, b), StopOrder.equal)

	def test_compare_early_stop_ids(self):
		self.assertIs(order.compare_early(self.bucket, 'A', 'C'), StopOrder.before)
		self.assertIs(order.compare_early(self.bucket, 'E', 'B'), StopOrder.after)
		self.assertIs(order.compare_early(self.bucket, 'A', 'X'), StopOrder.equal)
		self.assertIs(order.compare_early(self.route_dirs.buckets[1], 'A', 'C'), StopOrder.after)

		# Unordered stop-times of different trips are compared by pattern too
		sts1, sts2 = c.stop_times('t1', ['D']), c.stop_times('t2', ['B'])
		self.assertIs(order.compare_early(self.bucket, sts1[0], sts2[0]), StopOrder.after)

	def test_compare_early_loop(self):
		route_dirs = c.route_directions('L', [
			dict(id=0, stops=list('TPQPT')), dict(id=1, stops=list('TRT')) ])
		bucket = route_dirs.buckets[0]
		self.assertIs(order.compare_early(bucket, 'P', 'Q'), StopOrder.equal)
		self.assertIs(order.compare_early(bucket, 'T', 'Q'), StopOrder.equal)
		self.assertIs(order.compare_early(route_dirs.buckets[1], 'R', 'T'), StopOrder.equal)

	def test_stop_order_from_cmp(self):
		self.assertIs(StopOrder.from_cmp(1, 2), StopOrder.before)
		self.assertIs(StopOrder.from_cmp((2, 0), (1, 5)), StopOrder.after)
		self.assertIs(StopOrder.from_cmp(3, 3), StopOrder.equal)


class ReferencePatternTests(unittest.TestCase):

	def test_positions(self):
		pattern = c.gn.t.spec.ReferencePattern(list('TPQPT'))
		self.assertEqual(pattern.positions('P'), [1, 3])
		self.assertEqual(pattern.positions('X'), list())
		self.assertEqual(pattern.next_position('P', 1), 1)
		self.assertEqual(pattern.next_position('P', 2), 3)
		self.assertEqual(pattern.next_position('T', 0), 0)
		self.assertEqual(pattern.next_position('T', 1), 4)
		self.assertIsNone(pattern.next_position('Q', 3))
		self.assertIn('Q', pattern)
		self.assertEqual(len(pattern), 5)

	def test_immutable(self):
		route_dirs = c.route_directions('R', [dict(id=0, stops=['A']), dict(id=1, stops=['B'])])
		with self.assertRaises(c.gn.u.attr.exceptions.FrozenInstanceError):
			route_dirs.buckets[0].pattern = None
		table = c.gn.t.spec.PatternTable({'R': route_dirs})
		with self.assertRaises(TypeError): table.routes['X'] = route_dirs
		self.assertIs(table.get('R'), route_dirs)
		with self.assertRaises(ValueError):
			c.gn.t.spec.RouteDirections('R', route_dirs.buckets[:1])
