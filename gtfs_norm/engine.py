import itertools as it, operator as op, functools as ft
from collections import defaultdict

from . import utils as u, ids, names, direction, order, split


@u.attr_struct(vals_to_attrs=True)
class EngineConf:
	log_progress_for = None # or a set/list of prefixes, e.g. {'stops', 'split'}
	log_progress_steps = 30


def timer(self_or_func, func=None, *args, **kws):
	'Calculation call wrapper for timer/progress logging.'
	if not func: return lambda s,*a,**k: s.timer_wrapper(self_or_func, s, *a, **k)
	return self_or_func.timer_wrapper(func, *args, **kws)


class NormEngine:
	'''Normalizes Feed records in-place, according to AgencyConf tables.
		All steps are run on init, in order, and any FatalFeedError aborts the whole thing.'''

	def __init__(self, feed, agency_conf, conf=None, timer_func=None):
		self.feed, self.agency = feed, agency_conf
		self.conf, self.log = conf or EngineConf(), u.get_logger('gn.engine')
		self.timer_wrapper = timer_func if timer_func else lambda f,*a,**k: f(*a,**k)
		self.splits = dict() # canonical route id -> {bucket: [trip, ...]}

		self.filter_routes()
		self.normalize_routes()
		self.normalize_stops()
		self.split_trips()
		self.merge_headsigns()

	@u.coroutine
	def progress_iter(self, prefix, n_max, steps=None, n=0):
		'Progress logging helper coroutine for long calculations.'
		prefix_set = self.conf.log_progress_for
		if not prefix_set or prefix not in prefix_set:
			while True: yield # dry-run
		if not steps: steps = self.conf.log_progress_steps
		steps = min(n_max, steps)
		step_n = steps and n_max / steps
		msg_tpl = '[{{}}] Step {{:>{0}.0f}} / {{:{0}d}}{{}}'.format(len(str(steps)))
		while True:
			dn_msg = yield
			if isinstance(dn_msg, tuple): dn, msg = dn_msg
			elif isinstance(dn_msg, int): dn, msg = dn_msg, None
			else: dn, msg = 1, dn_msg
			n += dn
			if n == dn or n % step_n < 1:
				if msg:
					if not isinstance(msg, str): msg = msg[0].format(*msg[1:])
					msg = ': {}'.format(msg)
				self.log.debug(msg_tpl, prefix, n / step_n, steps, msg or '')


	def route_for_trip(self, trip): return self.feed.routes[trip.route_id]

	def route_trips(self):
		'Trips grouped by canonical route id, in feed order.'
		groups = defaultdict(list)
		for trip in self.feed.trips: groups[self.route_for_trip(trip).id].append(trip)
		return groups


	@timer
	def filter_routes(self):
		'Drop routes not matched by agency route filter, their trips, then routes and stops left unused.'
		feed, route_filter = self.feed, self.agency.route_filter
		for route in feed.routes:
			if route_filter.match(route): continue
			self.log.debug('Excluding route: {}', route)
			feed.routes.discard(route.route_id)

		trip_count = len(feed.trips)
		for trip in feed.trips:
			if trip.route_id not in feed.routes: feed.trips.discard(trip.trip_id)
			elif feed.service_ids is not None and trip.service_id not in feed.service_ids:
				feed.trips.discard(trip.trip_id)

		routes_used = set(trip.route_id for trip in feed.trips)
		for route in feed.routes:
			if route.route_id not in routes_used: feed.routes.discard(route.route_id)
		stops_used = set(st.stop_id for st in it.chain.from_iterable(feed.trips))
		for stop in feed.stops:
			if stop.stop_id not in stops_used: feed.stops.discard(stop.stop_id)

		self.log.debug( 'Kept routes={:,}, trips={:,} (of {:,}), stops={:,}',
			len(feed.routes), len(feed.trips), trip_count, len(feed.stops) )

	@timer
	def normalize_routes(self):
		'''Set canonical route ids, names and colors.
			All routes must be in agency route_attrs table, unless it is empty.'''
		for route in self.feed.routes:
			route.id = self.agency.route_ids.route_id(route)
			attrs = self.agency.route_attrs.get(route.id)
			if not attrs:
				if self.agency.route_attrs: raise ids.UnrecognizedIdentifier('route', route.id, route)
				self.log.debug('No route attrs for {}, using cleaned feed values', route)
			if attrs and attrs.short_name is not None: route.short_name = attrs.short_name
			else: route.short_name = route.short_name.strip()
			if attrs and attrs.long_name is not None: route.long_name = attrs.long_name
			else: route.long_name = names.clean_route_long_name(route.long_name)
			route.color = attrs and attrs.color

	@timer
	def normalize_stops(self):
		'Set canonical stop ids, codes and names, and canonical ids on all stop-times.'
		feed, agency = self.feed, self.agency
		progress = self.progress_iter('stops', len(feed.stops))
		for stop in feed.stops:
			progress.send(['stop={}', stop.stop_id])
			stop.id, stop.code = (
				ids.stop_id(agency.stop_ids, stop),
				ids.stop_code(agency.stop_ids, agency.stop_codes, stop) )
			stop.name = names.clean_stop_name(stop.name)
		for trip in feed.trips:
			for st in trip:
				stop = feed.stops.get(st.stop_id)
				if not stop: raise ids.UnrecognizedIdentifier('stop', st.stop_id, st)
				st.stop = stop.id

	@timer
	def split_trips(self):
		'''Split trips of routes with configured directions into two buckets,
			only cleaning up headsigns of all other routes.'''
		agency, route_trips = self.agency, self.route_trips()
		progress = self.progress_iter('split', len(route_trips))
		for route_id, trips in sorted(route_trips.items()):
			progress.send(['route={} trips={:,}', route_id, len(trips)])
			route_dirs = agency.patterns.get(route_id)
			if not route_dirs:
				for trip in trips: trip.headsign = names.clean_trip_headsign(trip.headsign)
				continue
			self.splits[route_id] = split.split(
				self.route_for_trip(trips[0]), route_dirs, trips,
				order_by_time=agency.order_by_time, headsign_func=names.clean_trip_headsign )

	@timer
	def merge_headsigns(self):
		'Merge headsigns of pass-through route trips, per route and feed direction flag.'
		groups = defaultdict(list)
		for route_id, trips in self.route_trips().items():
			if route_id in self.splits: continue
			for trip in trips: groups[route_id, trip.direction_id].append(trip)
		for (route_id, direction_id), trips in sorted(
				groups.items(), key=lambda v: (v[0][0], u.inf if v[0][1] is None else v[0][1]) ):
			headsign = direction.merge_headsign_set(
				route_id, (trip.headsign for trip in trips),
				self.agency.headsign_merges.get(route_id), direction_id )
			for trip in trips: trip.headsign = headsign


	def compare_early(self, route_id, a, b, direction_id=None):
		'''Relative order of two stops on a route: order.StopOrder value.
			a and b can be stop-times of split trips or canonical stop ids.
			Stop-times from different buckets are ordered by bucket declaration order.
			Bare stop ids are ordered by pattern of the bucket with direction_id, if it is passed,
				otherwise by whichever bucket pattern can decide on their order.'''
		route_dirs = self.agency.patterns.get(route_id)
		if not route_dirs or not route_dirs.has_patterns: return order.StopOrder.equal
		bucket_a, bucket_b = (getattr(v, 'bucket', None) for v in [a, b])
		if bucket_a and bucket_b:
			if bucket_a != bucket_b:
				return order.StopOrder.from_cmp(route_dirs.index(bucket_a), route_dirs.index(bucket_b))
			return order.compare_early(bucket_a, a, b)
		if bucket_a or bucket_b: return order.compare_early(bucket_a or bucket_b, a, b)
		if direction_id is not None:
			bucket = route_dirs.bucket_by_id(direction_id)
			return order.compare_early(bucket, a, b) if bucket else order.StopOrder.equal
		res = set(order.compare_early(bucket, a, b) for bucket in route_dirs)
		res.discard(order.StopOrder.equal)
		return res.pop() if len(res) == 1 else order.StopOrder.equal
