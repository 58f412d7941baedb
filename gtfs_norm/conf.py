### Per-agency configuration tables, loaded from declarative YAML documents

import itertools as it, operator as op, functools as ft
from pathlib import Path
import re

import yaml

from . import utils as u, ids
from .types import spec


log = u.get_logger('gn.conf')

path_agencies = Path(__file__).parent / 'agencies'


class ConfError(ValueError): pass


def yaml_load(stream, dict_cls=dict, loader_cls=yaml.SafeLoader):
	if not hasattr(yaml_load, '_cls'):
		class CustomLoader(loader_cls): pass
		def construct_mapping(loader, node):
			loader.flatten_mapping(node)
			return dict_cls(loader.construct_pairs(node))
		CustomLoader.add_constructor(
			yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping )
		# Do not auto-resolve dates/timestamps/floats, as codes and colors can look like these
		res_map = CustomLoader.yaml_implicit_resolvers = CustomLoader.yaml_implicit_resolvers.copy()
		res_int = list('-+0123456789')
		for c in res_int: del res_map[c]
		CustomLoader.add_implicit_resolver(
			'tag:yaml.org,2002:int',
			re.compile(r'''^(?:[-+]?(?:0|[1-9][0-9_]*))$''', re.X), res_int )
		yaml_load._cls = CustomLoader
	return yaml.load(stream, yaml_load._cls)


class RouteFilter:
	'''Route is kept if it matches all conditions of any include-rule.
		Condition values can be strings or lists of them (any of which should match),
			and are compared case-insensitively. No rules - all routes are kept.'''

	conditions = dict(
		agency_id=lambda route: route.agency_id,
		agency_id_prefix=lambda route: route.agency_id,
		agency_id_contains=lambda route: route.agency_id,
		route_id_contains=lambda route: route.route_id,
		short_name=lambda route: route.short_name,
		long_name=lambda route: route.long_name,
		long_name_contains=lambda route: route.long_name )

	def __init__(self, rules=None):
		self.rules = list()
		for rule in rules or list():
			if not isinstance(rule, dict) or not rule:
				raise ConfError('Route include-rule must be a non-empty mapping: {!r}'.format(rule))
			for k in rule:
				if k not in self.conditions:
					raise ConfError('Unknown route include-rule condition: {!r}'.format(k))
			self.rules.append(dict(
				(k, tuple(str(v).casefold() for v in ([vs] if isinstance(vs, str) else vs)))
				for k, vs in rule.items() ))

	def check(self, k, value, values):
		value = (value or '').casefold()
		if k.endswith('_prefix'): return any(value.startswith(v) for v in values)
		if k.endswith('_contains'): return any(v in value for v in values)
		return value in values

	def match(self, route):
		if not self.rules: return True
		for rule in self.rules:
			if all( self.check(k, self.conditions[k](route), values)
				for k, values in rule.items() ): return True
		return False


@u.attr_struct(frozen=True)
class RouteAttrs:
	short_name = u.attr_init(None)
	long_name = u.attr_init(None)
	color = u.attr_init(None)


@u.attr_struct(frozen=True)
class AgencyConf:
	name = u.attr_init('')
	color = u.attr_init(None)
	order_by_time = u.attr_init(False) # feed stop_sequence is not reliable
	route_filter = u.attr_init(RouteFilter, eq=False)
	route_ids = u.attr_init(ids.RouteIdRules)
	route_attrs = u.attr_init(dict, eq=False)
	stop_ids = u.attr_init(ids.IdNormalizer)
	stop_codes = u.attr_init(dict, eq=False)
	patterns = u.attr_init(spec.PatternTable)
	headsign_merges = u.attr_init(dict, eq=False)


def _color(v):
	if v is None: return None
	v = str(v).strip().lstrip('#').upper()
	if not re.search(r'^[0-9A-F]{6}$', v): raise ConfError('Invalid color value: {!r}'.format(v))
	return v

def _route_key(k):
	try: return int(k)
	except (TypeError, ValueError):
		raise ConfError('Route keys must be canonical integer ids, not {!r}'.format(k)) from None

def _bucket(route_id, stop_ids, data):
	if not isinstance(data, dict) or 'id' not in data:
		raise ConfError('Route {}: direction bucket must be a mapping with "id": {!r}'.format(route_id, data))
	bucket_id = int(data['id'])
	name = str(data.get('name', bucket_id))
	pattern = data.get('stops')
	if pattern is not None:
		if not pattern: raise ConfError('Route {}: empty stops list for direction {}'.format(route_id, name))
		stops = list()
		for stop in pattern:
			if isinstance(stop, int): stops.append(stop)
			else:
				try: stops.append(stop_ids.normalize(str(stop)))
				except ids.UnrecognizedIdentifier as err:
					raise ConfError('Route {} direction {}: {}'.format(route_id, name, err)) from None
		pattern = spec.ReferencePattern(stops)
	headsigns = list(map(str, data.get('headsigns') or list()))
	return spec.DirectionBucket( route_id, bucket_id, name,
		str(data.get('headsign', name)), pattern, headsigns )

def _route_directions(route_id, stop_ids, buckets):
	if not isinstance(buckets, list) or len(buckets) != 2:
		raise ConfError('Route {}: exactly two direction buckets must be defined'.format(route_id))
	buckets = list(_bucket(route_id, stop_ids, data) for data in buckets)
	if buckets[0].id == buckets[1].id:
		raise ConfError('Route {}: both directions have same id {}'.format(route_id, buckets[0].id))
	with_patterns = list(bucket.pattern is not None for bucket in buckets)
	if any(with_patterns) and not all(with_patterns):
		raise ConfError('Route {}: stops must be defined for both directions or neither'.format(route_id))
	if not any(with_patterns) and not all(bucket.headsigns for bucket in buckets):
		raise ConfError( 'Route {}: directions without stops'
			' must both have headsigns vocabulary'.format(route_id) )
	return spec.RouteDirections(route_id, buckets)


def agency_conf_from_dict(data):
	data = data or dict()
	unknown = set(data).difference([ 'name', 'color', 'order_by_time', 'routes',
		'route_ids', 'route_attrs', 'stop_ids', 'stop_codes', 'directions', 'headsign_merges' ])
	if unknown: raise ConfError('Unknown agency conf keys: {}'.format(', '.join(sorted(unknown))))

	route_filter = RouteFilter((data.get('routes') or dict()).get('include'))

	rid_data = data.get('route_ids') or dict()
	try:
		route_ids = ids.RouteIdRules(
			ids.IdNormalizer( 'route', rid_data.get('prefixes'),
				search_digits=rid_data.get('search_digits', True) ),
			rid_data.get('text_id_agencies') or list(), rid_data.get('short_names') )
		sid_data = data.get('stop_ids') or dict()
		stop_ids = ids.IdNormalizer( 'stop',
			sid_data.get('prefixes'), sid_data.get('overrides'),
			search_digits=sid_data.get('search_digits', False) )
	except (re.error, TypeError, ValueError) as err:
		raise ConfError('Invalid route/stop id rules: {}'.format(err)) from None

	route_attrs = dict()
	for k, attrs in (data.get('route_attrs') or dict()).items():
		attrs = attrs or dict()
		route_attrs[_route_key(k)] = RouteAttrs(
			attrs.get('short_name'), attrs.get('long_name'), _color(attrs.get('color')) )

	stop_codes = dict(
		(str(k).casefold(), '' if v is None else str(v))
		for k, v in (data.get('stop_codes') or dict()).items() )

	patterns = spec.PatternTable(
		(_route_key(k), _route_directions(_route_key(k), stop_ids, buckets))
		for k, buckets in (data.get('directions') or dict()).items() )

	headsign_merges = dict()
	for k, rules in (data.get('headsign_merges') or dict()).items():
		merges = headsign_merges[_route_key(k)] = list()
		for rule in rules or list():
			if not (isinstance(rule, dict) and rule.get('values') and rule.get('merged')):
				raise ConfError('Headsign merge rule must have "values" and "merged": {!r}'.format(rule))
			merges.append((frozenset(map(str, rule['values'])), str(rule['merged'])))

	return AgencyConf(
		name=str(data.get('name', '')), color=_color(data.get('color')),
		order_by_time=bool(data.get('order_by_time', False)),
		route_filter=route_filter, route_ids=route_ids, route_attrs=route_attrs,
		stop_ids=stop_ids, stop_codes=stop_codes,
		patterns=patterns, headsign_merges=headsign_merges )

def load_agency_conf(path_or_name):
	'''Load AgencyConf from YAML file path,
		or by name of one of the bundled agency files (without .yaml extension).'''
	path = Path(path_or_name)
	if not path.exists():
		path_bundled = path_agencies / '{}.yaml'.format(path_or_name)
		if not path_bundled.exists():
			raise ConfError('Agency conf file not found: {}'.format(path_or_name))
		path = path_bundled
	log.debug('Loading agency conf: {}', path)
	with path.open(encoding='utf-8') as src:
		try: data = yaml_load(src)
		except yaml.YAMLError as err:
			raise ConfError('Failed to parse agency conf YAML ({}): {}'.format(path, err)) from None
	return agency_conf_from_dict(data)
