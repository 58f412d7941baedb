### Writes normalized feed back as a GTFS directory

import itertools as it, operator as op, functools as ft
from pathlib import Path
import csv

from . import utils as u, order


log = u.get_logger('gn.export')


def merge_direction_stops(compare, stop_lists):
	'''Merge ordered canonical stop id lists of multiple trips into one.
		Each new stop is inserted after the previous stop of the same trip,
			skipping past merged stops that compare(merged, new) puts before it.
		Stops already merged further down the list are reused, so loops can repeat stops.'''
	merged = list()
	for stops in stop_lists:
		idx_prev = -1
		for stop in stops:
			try: idx_prev = merged.index(stop, idx_prev + 1)
			except ValueError: pass
			else: continue
			idx = idx_prev + 1
			while idx < len(merged) and compare(merged[idx], stop) is order.StopOrder.before: idx += 1
			merged.insert(idx, stop)
			idx_prev = idx
	return merged


def trip_stop_times(trip):
	'Stop-times in export order - resolved one for split trips, feed sequence otherwise.'
	if trip.stops and all(st.stopidx is not None for st in trip.stops):
		return sorted(trip.stops, key=op.attrgetter('stopidx'))
	return sorted(trip.stops, key=op.attrgetter('seq'))

def direction_stop_lists(engine):
	'Yield (route_id, direction_id, [stop, ...]) for all route directions, in order.'
	groups = dict()
	for route_id, trips in engine.route_trips().items():
		for trip in trips:
			groups.setdefault((route_id, trip.direction_id), list()).append(trip)
	for (route_id, direction_id), trips in sorted(
			groups.items(), key=lambda v: (v[0][0], u.inf if v[0][1] is None else v[0][1]) ):
		stop_lists = list(list(st.stop for st in trip_stop_times(trip)) for trip in trips)
		yield route_id, direction_id, merge_direction_stops(
			ft.partial(engine.compare_early, route_id, direction_id=direction_id), stop_lists )


def write_csv(out_dir, filename, header, rows):
	path, count = Path(out_dir) / '{}.txt'.format(filename), 0
	with u.safe_replacement(path, 'w', encoding='utf-8', newline='') as dst:
		dst_csv = csv.writer(dst)
		dst_csv.writerow(header)
		for row in rows:
			dst_csv.writerow(list('' if v is None else v for v in row))
			count += 1
	log.debug('Wrote {} ({:,} rows)', path, count)

def unique_by(records, key):
	seen = set()
	for rec in records:
		k = key(rec)
		if k in seen: continue
		seen.add(k)
		yield rec


def export_feed(engine, out_dir):
	'Write all normalized records from NormEngine as a GTFS directory.'
	feed, agency = engine.feed, engine.agency
	out_dir = Path(out_dir)
	out_dir.mkdir(parents=True, exist_ok=True)
	agency_ids = set(route.agency_id for route in feed.routes)

	write_csv( out_dir, 'agency',
		['agency_id', 'agency_name', 'agency_url', 'agency_timezone', 'agency_lang'],
		( (a.agency_id, a.name, a.url, a.timezone, a.lang)
			for a in feed.agencies if a.agency_id in agency_ids ) )

	write_csv( out_dir, 'routes',
		[ 'route_id', 'agency_id', 'route_short_name', 'route_long_name',
			'route_type', 'route_color', 'route_text_color' ],
		( (r.id, r.agency_id, r.short_name, r.long_name,
				r.type, r.color or agency.color, r.text_color)
			for r in unique_by(sorted(feed.routes, key=op.attrgetter('id')), op.attrgetter('id')) ) )

	write_csv( out_dir, 'stops',
		['stop_id', 'stop_code', 'stop_name', 'stop_lat', 'stop_lon'],
		( (s.id, s.code, s.name, s.lat, s.lon)
			for s in unique_by(sorted(feed.stops, key=op.attrgetter('id')), op.attrgetter('id')) ) )

	trips = sorted(feed.trips, key=lambda trip: (engine.route_for_trip(trip).id, trip.trip_id))
	write_csv( out_dir, 'trips',
		['route_id', 'service_id', 'trip_id', 'trip_headsign', 'direction_id'],
		( (engine.route_for_trip(trip).id, trip.service_id,
				trip.trip_id, trip.headsign, trip.direction_id)
			for trip in trips ) )

	write_csv( out_dir, 'stop_times',
		['trip_id', 'arrival_time', 'departure_time', 'stop_id', 'stop_sequence'],
		( (st.trip_id, u.dts_format(st.dts_arr), u.dts_format(st.dts_dep), st.stop, n)
			for trip in trips for n, st in enumerate(trip_stop_times(trip), 1) ) )

	service_ids = set(trip.service_id for trip in trips)
	write_csv( out_dir, 'calendar',
		[ 'service_id', 'monday', 'tuesday', 'wednesday',
			'thursday', 'friday', 'saturday', 'sunday', 'start_date', 'end_date' ],
		( [sce.service_id] + list(map(int, sce.weekdays)) + [sce.date_start, sce.date_end]
			for sce in feed.calendar if sce.service_id in service_ids ) )
	write_csv( out_dir, 'calendar_dates',
		['service_id', 'date', 'exception_type'],
		( (cd.service_id, cd.date, cd.exception.value)
			for cd in feed.calendar_dates if cd.service_id in service_ids ) )

	write_csv( out_dir, 'direction_stops',
		['route_id', 'direction_id', 'stop_id', 'stop_sequence'],
		( (route_id, direction_id, stop, n)
			for route_id, direction_id, stops in direction_stop_lists(engine)
			for n, stop in enumerate(stops, 1) ) )
