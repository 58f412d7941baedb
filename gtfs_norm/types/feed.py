### Feed records - input data, normalized in-place by the engine

import itertools as it, operator as op, functools as ft
import enum

from .. import utils as u


class CalendarException(enum.Enum): added, removed = '1', '2'


@u.attr_struct
class Agency:
	agency_id = u.attr_init()
	name = u.attr_init()
	url = u.attr_init('')
	timezone = u.attr_init('')
	lang = u.attr_init('')


@u.attr_struct(repr=False)
class Route:
	route_id = u.attr_init()
	agency_id = u.attr_init()
	short_name = u.attr_init('')
	long_name = u.attr_init('')
	type = u.attr_init(3) # bus
	color = u.attr_init(None) # None - same as agency
	text_color = u.attr_init(None)
	id = u.attr_init(None) # canonical int id, set by normalizer

	def __repr__(self):
		return '<Route {}{} [{} - {}]>'.format( self.route_id,
			'' if self.id is None else ':{}'.format(self.id), self.short_name, self.long_name )


@u.attr_struct(repr=False)
class Stop:
	stop_id = u.attr_init()
	code = u.attr_init('')
	name = u.attr_init('')
	lat = u.attr_init(0.0)
	lon = u.attr_init(0.0)
	id = u.attr_init(None)

	def __repr__(self):
		return '<Stop {}{} [{}]>'.format( self.stop_id,
			'' if self.id is None else ':{}'.format(self.id), self.name )


@u.attr_struct(repr=False)
class StopTime:
	trip_id = u.attr_init()
	stop_id = u.attr_init()
	seq = u.attr_init() # feed stop_sequence, never rewritten
	dts_arr = u.attr_init(None)
	dts_dep = u.attr_init(None)
	stop = u.attr_init(None) # canonical stop id
	rank = u.attr_init(None) # (reference position, sub-rank) after ordering
	bucket = u.attr_init(None)
	stopidx = u.attr_init(None) # position in ordered sequence

	@property
	def dts(self):
		'Scheduled time used for ordering, None for untimed stops.'
		return self.dts_dep if self.dts_dep is not None else self.dts_arr

	@property
	def key(self):
		'Canonical stop id if resolved, raw one otherwise.'
		return self.stop if self.stop is not None else self.stop_id

	def __repr__(self):
		return ( 'StopTime(trip_id={0.trip_id}, seq={0.seq}, stop={key},'
			' dts={dts}, rank={0.rank})' ).format(self, key=self.key, dts=u.dts_format(self.dts))


@u.attr_struct(repr=False)
class Trip:
	trip_id = u.attr_init()
	route_id = u.attr_init()
	service_id = u.attr_init('')
	headsign = u.attr_init('')
	direction_id = u.attr_init(None)
	stops = u.attr_init(list)
	bucket = u.attr_init(None) # DirectionBucket after split

	def add(self, st): self.stops.append(st)

	def __getitem__(self, n): return self.stops[n]
	def __len__(self): return len(self.stops)
	def __iter__(self): return iter(self.stops)
	def __repr__(self):
		return 'Trip(id={0.trip_id}, route={0.route_id}, headsign={0.headsign!r},'\
			' direction={0.direction_id}, stops={stops})'.format(self, stops=len(self.stops))


@u.attr_struct
class CalendarEntry:
	service_id = u.attr_init()
	weekdays = u.attr_init() # 7 bools, monday first
	date_start = u.attr_init()
	date_end = u.attr_init()

@u.attr_struct
class CalendarDate:
	service_id = u.attr_init()
	date = u.attr_init()
	exception = u.attr_init()


class Records:
	'Insertion-ordered records, indexed by raw feed id.'

	key = None

	def __init__(self, *records):
		self.set_idx = dict()
		for rec in records: self.add(rec)

	def add(self, rec):
		self.set_idx[getattr(rec, self.key)] = rec
		return rec

	def get(self, rec_id, default=None): return self.set_idx.get(rec_id, default)
	def discard(self, rec_id): self.set_idx.pop(rec_id, None)

	def __getitem__(self, rec_id): return self.set_idx[rec_id]
	def __contains__(self, rec_id): return rec_id in self.set_idx
	def __len__(self): return len(self.set_idx)
	def __iter__(self): return iter(list(self.set_idx.values()))

class Agencies(Records): key = 'agency_id'
class Routes(Records): key = 'route_id'
class Stops(Records): key = 'stop_id'
class Calendar(Records): key = 'service_id'

class Trips(Records):
	key = 'trip_id'

	def for_route(self, route_id):
		return list(trip for trip in self if trip.route_id == route_id)

	def stat_mean_stops(self):
		if not len(self): return 0
		return sum(len(t) for t in self) / len(self)


@u.attr_struct
class Feed:
	agencies = u.attr_init(Agencies)
	routes = u.attr_init(Routes)
	stops = u.attr_init(Stops)
	trips = u.attr_init(Trips)
	calendar = u.attr_init(Calendar)
	calendar_dates = u.attr_init(list)
	service_ids = u.attr_init(None) # set of services active within parsed timespan, None - all

	def agency_timezone(self):
		for agency in self.agencies:
			if agency.timezone: return agency.timezone
