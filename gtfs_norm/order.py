### Stop-Sequence Ordering Engine
###
### Observed trip stops are walked against direction's reference pattern,
###  assigning each one a (position, sub-rank) tuple, where position is in the
###  pattern and only moves forward, and sub-rank orders repeated and
###  interstitial (not in pattern) stops after their anchor.

import itertools as it, operator as op, functools as ft
import enum

import attr

from . import utils as u


log = u.get_logger('gn.order')


class UnresolvableStopOrder(u.FatalFeedError):

	def __init__(self, route_id, bucket, stop, trip_id=None):
		self.route_id, self.bucket, self.stop, self.trip_id = route_id, bucket, stop, trip_id
		super(UnresolvableStopOrder, self).__init__(
			( 'Stop {} of trip {} cannot be ordered against reference pattern'
				' of route {} (direction: {}), pattern table is likely stale' )\
			.format(stop, trip_id, route_id, getattr(bucket, 'name', bucket)) )


class StopOrder(enum.Enum):
	'Result of comparing two stops within one direction.'
	before = -1
	equal = 0
	after = 1

	@classmethod
	def from_cmp(cls, a, b):
		return cls.equal if a == b else [cls.after, cls.before][a < b]


@u.attr_struct
class RankWalk:
	'Result of matching observed stop sequence against one reference pattern.'
	bucket = u.attr_init()
	observed = u.attr_init()
	ranks = u.attr_init(list) # aligned with observed, up to failed stop
	anchors = u.attr_init(0)
	interstitials = u.attr_init(0)
	first_pos = u.attr_init(None)
	failed = u.attr_init(None) # StopTime at which walk had to backtrack

	@property
	def ok(self): return self.failed is None and self.anchors > 0

	@property
	def progress(self): return len(self.ranks)

	def score(self, trip_direction=None):
		'Sort key to pick best-matching walk among successful ones, lower is better.'
		return (
			self.interstitials,
			abs(len(self.bucket.pattern) - len(self.observed)),
			self.first_pos,
			int(trip_direction is not None and trip_direction != self.bucket.id) )


def observed_sequence(stop_times, order_by_time=False):
	'''Stop-times in the order they are reported by the feed.
		With order_by_time=True, feed stop_sequence is only used as a tie-breaker,
			and untimed stops are kept after the last timed one before them.'''
	stop_times = sorted(stop_times, key=op.attrgetter('seq'))
	if not order_by_time: return stop_times
	dts_prev, keys = -1, list()
	for st in stop_times:
		if st.dts is not None: dts_prev = st.dts
		keys.append((dts_prev, st.seq))
	return list(st for k, st in sorted(zip(keys, stop_times), key=op.itemgetter(0)))

def ambiguity_groups(observed):
	'Split observed sequence into runs of stops with same scheduled time.'
	group, dts_group = list(), None
	for st in observed:
		if group and (st.dts is None or st.dts != dts_group):
			yield group
			group = list()
		group.append(st)
		dts_group = st.dts
	if group: yield group


def rank_walk(bucket, observed):
	'''Walk observed stop-times through bucket.pattern, returning RankWalk.
		Within an ambiguity group, stops are matched in pattern order,
			and each interstitial one is ranked right after the stop preceding it in the feed.'''
	pattern, walk = bucket.pattern, RankWalk(bucket, observed)
	pos, sub, ranks = -1, 0, dict()
	for group in ambiguity_groups(observed):
		rank_prev, pending = (pos, sub), list(group)
		while pending:
			match = None
			for st in pending:
				st_pos = pattern.next_position(st.key, pos)
				if st_pos is None: continue
				if not match or st_pos < match[0]: match = st_pos, st
			if not match: break
			st_pos, st = match
			pending.remove(st)
			if st_pos == pos: sub += 1
			else: pos, sub = st_pos, 0
			if walk.first_pos is None: walk.first_pos = pos
			ranks[id(st)] = pos, sub
			walk.anchors += 1
		walk.failed = next((st for st in pending if st.key in pattern), None)
		if walk.failed: break
		for st in group:
			if id(st) not in ranks:
				ranks[id(st)] = rank_prev[0], rank_prev[1] + 1
				walk.interstitials += 1
			rank_prev = ranks[id(st)]
		pos, sub = max(ranks[id(st)] for st in group)
	for st in observed:
		if id(st) not in ranks: break
		walk.ranks.append(ranks[id(st)])
	return walk


def _ordered(walk):
	'Ordered copies of walk.observed stop-times, with ranks and stopidx set.'
	sort_key = lambda v: (v[0], u.inf if v[1].dts is None else v[1].dts, v[1].seq)
	ordered = sorted(zip(walk.ranks, walk.observed), key=sort_key)
	return list(
		attr.evolve(st, rank=rank, bucket=walk.bucket, stopidx=n)
		for n, (rank, st) in enumerate(ordered) )

def _log_walk(walk, trip_id):
	lines = [('Failed rank walk for trip {} against {}:', trip_id, walk.bucket)]
	lines.append(('  pattern: {}', ' '.join(map(str, walk.bucket.pattern))))
	for st, rank in it.zip_longest(walk.observed, walk.ranks):
		lines.append(('  {} -> {}{}', st, rank, ' [FAILED]' if st is walk.failed else ''))
	u.log_lines(log.debug, lines)

def _walk_failure(walk, trip_id):
	stop = walk.failed.key if walk.failed else (walk.observed[0].key if walk.observed else None)
	return UnresolvableStopOrder(walk.bucket.route_id, walk.bucket, stop, trip_id)


def order(bucket, stop_times, order_by_time=False, trip_id=None):
	'Return stop-times ordered by their resolved reference rank within bucket.'
	walk = rank_walk(bucket, observed_sequence(stop_times, order_by_time))
	if not walk.ok:
		_log_walk(walk, trip_id)
		raise _walk_failure(walk, trip_id)
	return _ordered(walk)

def resolve(route_dirs, stop_times, trip=None, order_by_time=False):
	'''Pick direction bucket that given stop-times match best and order them against it.
		Returns (bucket, ordered_stop_times) tuple.'''
	observed = observed_sequence(stop_times, order_by_time)
	walks = list(rank_walk(bucket, observed) for bucket in route_dirs)
	trip_id, trip_direction = (None, None) if not trip else (trip.trip_id, trip.direction_id)
	matched = list((walk.score(trip_direction), n, walk) for n, walk in enumerate(walks) if walk.ok)
	if not matched:
		walk = max(walks, key=op.attrgetter('progress')) # first one on ties
		for w in walks: _log_walk(w, trip_id)
		raise _walk_failure(walk, trip_id)
	score, n, walk = min(matched, key=op.itemgetter(0, 1))
	if len(matched) > 1:
		log.debug( 'Trip {} matches both directions of route {},'
			' picked {} (scores: {})', trip_id, walk.bucket.route_id,
			walk.bucket.name, ', '.join(str(m[0]) for m in matched) )
	return walk.bucket, _ordered(walk)


def pattern_relation(pattern, stop_a, stop_b):
	'''StopOrder for two stops by their positions in reference pattern.
		Stops that are not in it or can be both before and after each other are "equal".'''
	if stop_a == stop_b: return StopOrder.equal
	pos_a, pos_b = pattern.positions(stop_a), pattern.positions(stop_b)
	if not (pos_a and pos_b): return StopOrder.equal
	a_first, b_first = pos_a[0] < pos_b[-1], pos_b[0] < pos_a[-1]
	if a_first == b_first: return StopOrder.equal
	return StopOrder.before if a_first else StopOrder.after

def compare_early(bucket, a, b):
	'''Compare two stops of the same direction without ordering whole trips.
		Stop-times of the same ordered trip are compared by their ranks,
			anything else (incl. bare canonical stop ids) by reference pattern positions.'''
	rank_a, rank_b = (getattr(st, 'rank', None) for st in [a, b])
	if ( rank_a is not None and rank_b is not None
			and a.trip_id == b.trip_id and a.bucket == b.bucket ):
		key = lambda st: (st.rank, u.inf if st.dts is None else st.dts, st.seq)
		return StopOrder.from_cmp(key(a), key(b))
	stop_a, stop_b = (getattr(st, 'key', st) for st in [a, b])
	return pattern_relation(bucket.pattern, stop_a, stop_b)
