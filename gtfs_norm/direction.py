### Direction Classifier - headsign-based fallback for routes without reference patterns,
###  and merging of headsigns for trips that end up in the same direction.

import itertools as it, operator as op, functools as ft

from . import utils as u, order


log = u.get_logger('gn.direction')


class UnclassifiableTrip(u.FatalFeedError):

	def __init__(self, route_id, trip, headsign, matches=None):
		self.route_id, self.trip, self.headsign = route_id, trip, headsign
		self.matches = matches or list()
		if not self.matches: reason = 'no direction rule matches headsign'
		else: reason = 'headsign matches multiple directions ({})'.format(
			', '.join(bucket.name for bucket in self.matches) )
		super(UnclassifiableTrip, self).__init__(
			'Route {}, trip {}: {} {!r}'.format(
				route_id, getattr(trip, 'trip_id', trip), reason, headsign ) )


class UnmergeableHeadsignPair(u.FatalFeedError):

	def __init__(self, route_id, headsign_a, headsign_b, direction_id=None):
		self.route_id, self.direction_id = route_id, direction_id
		self.headsigns = headsign_a, headsign_b
		super(UnmergeableHeadsignPair, self).__init__(
			'Route {} (direction: {}): no rule to merge trip headsigns {!r} and {!r}'\
				.format(route_id, direction_id, headsign_a, headsign_b) )


def headsign_matches(headsign, vocabulary):
	'''Check headsign against vocabulary values, case-insensitive.
		Values starting with "~" match as substrings, others only whole headsign.'''
	headsign = headsign.strip().casefold()
	for value in vocabulary:
		if value.startswith('~'):
			if value[1:].strip().casefold() in headsign: return True
		elif value.strip().casefold() == headsign: return True
	return False

def classify_headsign(route_dirs, trip, headsign):
	matches = list(
		bucket for bucket in route_dirs
		if headsign_matches(headsign, bucket.headsigns) )
	if len(matches) != 1:
		raise UnclassifiableTrip(route_dirs.route_id, trip, headsign, matches)
	return matches[0]

def classify(route_dirs, trip, headsign=None, order_by_time=False):
	'''Return DirectionBucket for trip.
		Routes with reference patterns are matched by trip stops,
			in which case ordered stop-times are returned as well,
			others - by headsign (cleaned one can be passed, trip.headsign otherwise).
		Return value is (bucket, ordered_stop_times_or_None) tuple.'''
	if route_dirs.has_patterns:
		return order.resolve(route_dirs, trip.stops, trip, order_by_time=order_by_time)
	if headsign is None: headsign = trip.headsign
	return classify_headsign(route_dirs, trip, headsign), None


def merge_headsigns(route_id, headsign_a, headsign_b, rules, direction_id=None):
	'''Return single headsign for two trips of the same route/direction.
		rules is a list of (values, merged) tuples, where merged
			headsign is used if both passed ones are among values.'''
	if headsign_a == headsign_b: return headsign_a
	for values, merged in rules or list():
		if headsign_a in values and headsign_b in values:
			log.debug( 'Route {} (direction: {}): merged headsigns'
				' {!r} + {!r} -> {!r}', route_id, direction_id, headsign_a, headsign_b, merged )
			return merged
	raise UnmergeableHeadsignPair(route_id, headsign_a, headsign_b, direction_id)

def merge_headsign_set(route_id, headsigns, rules, direction_id=None):
	'Reduce any number of headsigns (in sorted order) into one.'
	headsigns = sorted(set(headsigns))
	if not headsigns: return ''
	return ft.reduce(
		lambda a, b: merge_headsigns(route_id, a, b, rules, direction_id), headsigns )
