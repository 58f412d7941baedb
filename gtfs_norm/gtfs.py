import itertools as it, operator as op, functools as ft
from collections import namedtuple, defaultdict
from pathlib import Path
import os, csv, datetime

import pytz

from . import utils as u, types as t


log = u.get_logger('gn.gtfs')


@u.attr_struct(vals_to_attrs=True)
class GTFSConf:

	# Only trips for services operating within [start - days_pre, start + days]
	#  will be kept, if parse_start_date is set, all of them otherwise.
	# "today" value is resolved to a date in agency_timezone from the feed.
	parse_start_date = None # datetime.date object, YYYYMMDD string or "today"
	parse_days = 30
	parse_days_pre = 0

	gtfs_timezone = None # pytz zone name, overrides agency_timezone from feed


weekday_columns = [ 'monday', 'tuesday',
	'wednesday', 'thursday', 'friday', 'saturday', 'sunday' ]

TimespanInfo = namedtuple('TimespanInfo', 'date_start date_min date_max')


def iter_gtfs_tuples(gtfs_dir, filename, empty_if_missing=False):
	log.debug('Processing gtfs file: {}', filename)
	if filename.endswith('.txt'): filename = filename[:-4]
	tuple_t = ''.join(' '.join(filename.rstrip('s').split('_')).title().split())
	p = Path(gtfs_dir) / '{}.txt'.format(filename)
	if empty_if_missing and not os.access(str(p), os.R_OK): return
	with p.open(encoding='utf-8-sig', newline='') as src:
		src_csv = csv.reader(src)
		fields = list(v.strip() for v in next(src_csv))
		tuple_t = namedtuple(tuple_t, fields, defaults=[''] * len(fields))
		for line in src_csv:
			if not line: continue
			try: yield tuple_t(*line)
			except TypeError:
				log.debug('Skipping bogus CSV line (file: {}): {!r}', p, line)


def resolve_start_date(start_date, timezone=None):
	'Return datetime.date for GTFSConf.parse_start_date value.'
	if isinstance(start_date, datetime.datetime): return start_date.date()
	if isinstance(start_date, datetime.date): return start_date
	if start_date.strip().lower() == 'today':
		tz = pytz.timezone(timezone) if timezone else pytz.utc
		return datetime.datetime.now(tz).date()
	return u.date_parse(start_date)

def get_timespan_info(start_date, days, days_pre):
	date_min = start_date - datetime.timedelta(days_pre)
	date_max = start_date + datetime.timedelta(days)
	return TimespanInfo(start_date, date_min, date_max)

def get_active_services(calendar, calendar_dates, timespan):
	'''Return set of service_ids operating on any day within timespan.
		Services only listed in calendar_dates are included if they have "added" days there.'''
	svc_exceptions = defaultdict(ft.partial(defaultdict, set))
	for cd in calendar_dates:
		svc_exceptions[cd.service_id][cd.exception].add(u.date_parse(cd.date))

	day_count = (timespan.date_max - timespan.date_min).days + 1
	days = list(timespan.date_min + datetime.timedelta(n) for n in range(day_count))
	svc_ids = set()
	for svc_id in set(it.chain((sce.service_id for sce in calendar), svc_exceptions)):
		excs, sce = svc_exceptions[svc_id], calendar.get(svc_id)
		for day in days:
			if day in excs[t.feed.CalendarException.added]: break
			if day in excs[t.feed.CalendarException.removed] or not sce: continue
			if not (u.date_parse(sce.date_start) <= day <= u.date_parse(sce.date_end)): continue
			if sce.weekdays[day.weekday()]: break
		else: continue
		svc_ids.add(svc_id)
	return svc_ids


def parse_feed(gtfs_dir, conf=None):
	'Parse Feed from GTFS data directory.'
	conf = conf or GTFSConf()
	feed = t.feed.Feed()

	for s in iter_gtfs_tuples(gtfs_dir, 'agency'):
		feed.agencies.add(t.feed.Agency(
			s.agency_id or s.agency_name, s.agency_name,
			getattr(s, 'agency_url', ''), getattr(s, 'agency_timezone', ''),
			getattr(s, 'agency_lang', '') ))

	default_agency_id = next(iter(feed.agencies)).agency_id if len(feed.agencies) == 1 else ''
	for s in iter_gtfs_tuples(gtfs_dir, 'routes'):
		feed.routes.add(t.feed.Route(
			s.route_id, getattr(s, 'agency_id', '') or default_agency_id,
			getattr(s, 'route_short_name', ''), getattr(s, 'route_long_name', ''),
			int(getattr(s, 'route_type', '') or 3),
			getattr(s, 'route_color', '') or None, getattr(s, 'route_text_color', '') or None ))

	for s in iter_gtfs_tuples(gtfs_dir, 'stops'):
		feed.stops.add(t.feed.Stop(
			s.stop_id, getattr(s, 'stop_code', ''), getattr(s, 'stop_name', ''),
			float(getattr(s, 'stop_lat', '') or 0), float(getattr(s, 'stop_lon', '') or 0) ))

	for s in iter_gtfs_tuples(gtfs_dir, 'calendar', empty_if_missing=True):
		weekdays = tuple(bool(int(getattr(s, k) or 0)) for k in weekday_columns)
		feed.calendar.add(t.feed.CalendarEntry(s.service_id, weekdays, s.start_date, s.end_date))
	for s in iter_gtfs_tuples(gtfs_dir, 'calendar_dates', empty_if_missing=True):
		feed.calendar_dates.append(t.feed.CalendarDate(
			s.service_id, s.date, t.feed.CalendarException(s.exception_type.strip()) ))

	if conf.parse_start_date:
		timespan = get_timespan_info(
			resolve_start_date(conf.parse_start_date, conf.gtfs_timezone or feed.agency_timezone()),
			conf.parse_days, conf.parse_days_pre )
		feed.service_ids = get_active_services(feed.calendar, feed.calendar_dates, timespan)
		log.debug( 'Services active within {} - {}: {:,}',
			timespan.date_min, timespan.date_max, len(feed.service_ids) )
		if not feed.service_ids:
			log.info('No services were found to be operational on specified days')

	for s in iter_gtfs_tuples(gtfs_dir, 'trips'):
		if feed.service_ids is not None and s.service_id not in feed.service_ids: continue
		direction_id = getattr(s, 'direction_id', '').strip()
		feed.trips.add(t.feed.Trip(
			s.trip_id, s.route_id, s.service_id, getattr(s, 'trip_headsign', ''),
			int(direction_id) if direction_id else None ))

	for s in iter_gtfs_tuples(gtfs_dir, 'stop_times'):
		trip = feed.trips.get(s.trip_id)
		if not trip: continue
		trip.add(t.feed.StopTime(
			s.trip_id, s.stop_id, int(s.stop_sequence),
			u.dts_parse(s.arrival_time), u.dts_parse(s.departure_time) ))

	log.debug(
		'Parsed feed: agencies={:,}, routes={:,}, stops={:,}, trips={:,} (mean-stops={:,.1f})',
		len(feed.agencies), len(feed.routes), len(feed.stops),
		len(feed.trips), feed.trips.stat_mean_stops() )
	return feed
