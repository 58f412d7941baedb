### Reference Pattern Table - per-route direction buckets and their stop sequences
### Built once from agency configuration, never mutated afterwards.

import itertools as it, operator as op, functools as ft
import types, bisect

from .. import utils as u


@u.attr_struct(frozen=True, repr=False)
class ReferencePattern:
	'''Ordered canonical stop ids of a "textbook" trip in one direction.
		Same stop can be listed more than once, e.g. for loops.'''

	stops = u.attr_init(converter=tuple)
	index = u.attr_init(None, init=False, eq=False, repr=False)

	def __attrs_post_init__(self):
		index = dict()
		for n, stop in enumerate(self.stops): index.setdefault(stop, list()).append(n)
		object.__setattr__(self, 'index', index)

	def positions(self, stop):
		'Sorted list of positions of stop in pattern, empty if it is not there.'
		return self.index.get(stop, list())

	def next_position(self, stop, pos):
		'''Nearest position for stop consistent with walk being at pos, or None.
			Stop equal to the one at pos stays there, otherwise walk only goes forward.'''
		if 0 <= pos < len(self.stops) and self.stops[pos] == stop: return pos
		positions = self.positions(stop)
		n = bisect.bisect_right(positions, pos)
		return positions[n] if n < len(positions) else None

	def __contains__(self, stop): return stop in self.index
	def __len__(self): return len(self.stops)
	def __iter__(self): return iter(self.stops)
	def __repr__(self): return '<ReferencePattern [{}]>'.format(' '.join(map(str, self.stops)))


@u.attr_struct(frozen=True, repr=False)
class DirectionBucket:
	route_id = u.attr_init()
	id = u.attr_init() # exported as trip direction_id
	name = u.attr_init()
	headsign = u.attr_init()
	pattern = u.attr_init(None)
	headsigns = u.attr_init(tuple(), converter=tuple) # vocabulary for headsign-based classifier

	def __repr__(self):
		return '<DirectionBucket {0.route_id}/{0.name} [{0.id}: {0.headsign}]>'.format(self)


@u.attr_struct(frozen=True)
class RouteDirections:
	route_id = u.attr_init()
	buckets = u.attr_init(converter=tuple)

	def __attrs_post_init__(self):
		if len(self.buckets) != 2:
			raise ValueError( 'Route {} must have exactly two direction'
				' buckets, got {}'.format(self.route_id, len(self.buckets)) )

	@property
	def has_patterns(self):
		return all(bucket.pattern is not None for bucket in self.buckets)

	def bucket_by_id(self, bucket_id):
		for bucket in self.buckets:
			if bucket.id == bucket_id: return bucket

	def index(self, bucket): return self.buckets.index(bucket)

	def __iter__(self): return iter(self.buckets)
	def __len__(self): return len(self.buckets)


@u.attr_struct(frozen=True)
class PatternTable:
	'Read-only mapping of canonical route id to its RouteDirections.'

	routes = u.attr_init(dict, converter=lambda v: types.MappingProxyType(dict(v)), eq=False)

	def get(self, route_id): return self.routes.get(route_id)
	def __contains__(self, route_id): return route_id in self.routes
	def __getitem__(self, route_id): return self.routes[route_id]
	def __len__(self): return len(self.routes)
	def __iter__(self): return iter(self.routes.values())
