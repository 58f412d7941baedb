#!/usr/bin/env python3

import itertools as it, operator as op, functools as ft
from pathlib import Path
import os, sys, re

import gtfs_norm as gn


def main(args=None):
	conf = gn.gtfs.GTFSConf()
	conf_engine = gn.engine.EngineConf()

	import argparse
	parser = argparse.ArgumentParser(
		description='Normalize GTFS feed of a specific agency,'
			' reconstructing trip directions and stop order from reference patterns.')
	parser.add_argument('gtfs_dir', help='Path to gtfs data directory to normalize.')
	parser.add_argument('out_dir',
		help='Directory to write normalized gtfs files to. Will be created, if missing.')

	group = parser.add_argument_group('Agency options')
	group.add_argument('-a', '--agency', metavar='{ name | path }', default='niagara-falls-wego',
		help='Agency configuration YAML file or name of the bundled one'
			' (from {} dir, without .yaml extension). Default: %(default)s'.format(gn.conf.path_agencies))

	group = parser.add_argument_group('Feed calendar options')
	group.add_argument('-d', '--day', metavar='{ YYYYMMDD | YYYY-MM-DD | today }',
		help='Only keep trips for services operating on specified date and its vicinity.'
			' "today" is resolved in the agency timezone from the feed.'
			' Without this option, all trips are used regardless of calendar info.'
			' See also --parse-days-after and --parse-days-before options.')
	group.add_argument('--parse-days-after',
		type=int, default=conf.parse_days, metavar='n',
		help='In addition to date specified with --day,'
			' keep trips for specified number of days after it. Default: %(default)s')
	group.add_argument('--parse-days-before',
		type=int, default=conf.parse_days_pre, metavar='n',
		help='Similar to --parse-days-after, but for N previous days. Default: %(default)s')

	group = parser.add_argument_group('Misc/debug options')
	group.add_argument('--dot-for-patterns', metavar='path',
		help='Dump graph of agency reference stop patterns'
			' (in graphviz dot format) to a specified file and exit.')
	group.add_argument('--dot-opts', metavar='yaml-data',
		help='Options for graphviz graph/nodes/edges to use with'
			' --dot-for-patterns, as a YAML mappings. Example: {graph: {rankdir: TB}}')
	group.add_argument('--engine-conf', metavar='yaml-data',
		help='Override values for EngineConf as a YAML mapping.'
			' Example: {log_progress_for: [stops, split], log_progress_steps: 10}')
	group.add_argument('--debug', action='store_true', help='Verbose operation mode.')

	opts = parser.parse_args(sys.argv[1:] if args is None else args)

	gn.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S',
		level=gn.u.logging.DEBUG if opts.debug else gn.u.logging.WARNING )
	log = gn.u.get_logger('gn.main')

	day = opts.day
	if day:
		m = re.search(r'^\s*(\d{4})\s*-\s*(\d{2})\s*-\s*(\d{2})\s*$', day)
		if m: day = ''.join(m.groups())
		day = day.strip()
		if not (day.isdigit() and len(day) == 8) and day.lower() != 'today':
			parser.error('Unrecognized --day value: {!r}'.format(opts.day))

	if opts.engine_conf:
		import yaml
		for k, v in yaml.safe_load(opts.engine_conf).items():
			if not hasattr(conf_engine, k):
				parser.error('Unrecognized engine conf option: {!r} (value: {!r})'.format(k, v))
			if k == 'log_progress_for' and v: v = set(v)
			setattr(conf_engine, k, v)

	conf.parse_start_date, conf.parse_days, conf.parse_days_pre =\
		day, opts.parse_days_after, opts.parse_days_before

	try: agency_conf = gn.conf.load_agency_conf(opts.agency)
	except gn.conf.ConfError as err:
		log.error('Failed to load agency configuration: {}', err)
		return 1

	if opts.dot_for_patterns:
		dot_opts = dict()
		if opts.dot_opts:
			import yaml
			dot_opts = yaml.safe_load(opts.dot_opts)
		with gn.u.safe_replacement(opts.dot_for_patterns) as dst:
			gn.vis.dot_for_patterns(agency_conf.patterns, dst, dot_opts=dot_opts)
		return

	try:
		engine = gn.normalize_feed( opts.gtfs_dir, agency_conf,
			conf_gtfs=conf, conf_engine=conf_engine, timer_func=gn.calc_timer )
		gn.export.export_feed(engine, opts.out_dir)
	except gn.u.FatalFeedError as err:
		log.error('Feed normalization failed: {}', err)
		return 1

if __name__ == '__main__': sys.exit(main())
