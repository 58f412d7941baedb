import itertools as it, operator as op, functools as ft
from pathlib import Path
import time

from . import conf, engine, export, vis, gtfs, utils as u, types as t


def calc_timer(func, *args, log=u.get_logger('gn.timer'), timer_name=None, **kws):
	if not timer_name:
		func_base = func if not isinstance(func, ft.partial) else func.func
		timer_name = '.'.join([func_base.__module__.strip('__'), func_base.__qualname__])
	log.debug('[{}] Starting...', timer_name)
	td = time.monotonic()
	data = func(*args, **kws)
	td = time.monotonic() - td
	log.debug('[{}] Finished in: {:.1f}s', timer_name, td)
	return data


def normalize_feed(
		gtfs_dir, agency_conf, conf_gtfs=None,
		conf_engine=None, timer_func=None, log=u.get_logger('gn.init') ):
	'''Parse GTFS directory and run NormEngine on it, returning the engine.
		agency_conf can be AgencyConf object or path/name to load it from.'''
	if not isinstance(agency_conf, conf.AgencyConf):
		agency_conf = conf.load_agency_conf(agency_conf)
	if not conf_gtfs: conf_gtfs = gtfs.GTFSConf()

	feed_func, engine_func = gtfs.parse_feed,\
		ft.partial(engine.NormEngine, conf=conf_engine, timer_func=timer_func)
	if timer_func:
		feed_func, engine_func = (
			ft.partial(timer_func, func) for func in [feed_func, engine_func] )

	feed = feed_func(Path(gtfs_dir), conf_gtfs)
	log.debug( 'Normalizing feed for agency {!r}:'
		' routes={:,}, trips={:,}, stops={:,}', agency_conf.name or '-',
		len(feed.routes), len(feed.trips), len(feed.stops) )
	return engine_func(feed, agency_conf)
