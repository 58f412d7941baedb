import itertools as it, operator as op, functools as ft
from collections import ChainMap, OrderedDict
from collections.abc import Mapping
from pathlib import Path
import os, sys, types

path_project = Path(__file__).parent.parent
sys.path.insert(1, str(path_project))
import gtfs_norm as gn

verbose = os.environ.get('GN_DEBUG')
if verbose:
	gn.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S', level=gn.u.logging.DEBUG )



class dmap(ChainMap):

	maps = None

	def __init__(self, *maps, **map0):
		maps = list((v if not isinstance( v,
			(types.GeneratorType, list, tuple) ) else OrderedDict(v)) for v in maps)
		if map0 or not maps: maps = [map0] + maps
		super(dmap, self).__init__(*maps)

	def __repr__(self):
		return '<{} {:x} {}>'.format(
			self.__class__.__name__, id(self), repr(self._asdict()) )

	def _asdict(self):
		items = dict()
		for k, v in self.items():
			if isinstance(v, self.__class__): v = v._asdict()
			items[k] = v
		return items

	def _set_attr(self, k, v):
		self.__dict__[k] = v

	def __iter__(self):
		key_set = dict.fromkeys(set().union(*self.maps), True)
		return filter(lambda k: key_set.pop(k, False), it.chain.from_iterable(self.maps))

	def __getitem__(self, k):
		k_maps = list()
		for m in self.maps:
			if k in m:
				if isinstance(m[k], Mapping): k_maps.append(m[k])
				elif not (m[k] is None and k_maps): return m[k]
		if not k_maps: raise KeyError(k)
		return self.__class__(*k_maps)

	def __getattr__(self, k):
		try: return self[k]
		except KeyError: raise AttributeError(k)

	def __setattr__(self, k, v):
		for m in map(op.attrgetter('__dict__'), [self] + self.__class__.mro()):
			if k in m:
				self._set_attr(k, v)
				break
		else: self[k] = v

	def __delitem__(self, k):
		for m in self.maps:
			if k in m: del m[k]


def load_test_data(path_dir, path_stem, name):
	'Load test data from specified YAML file and return as dmap object.'
	with (path_dir / '{}.test.{}.yaml'.format(path_stem, name)).open(encoding='utf-8') as src:
		return dmap(gn.conf.yaml_load(src, dict_cls=OrderedDict))


def stop_times(trip_id, stops):
	'''Build StopTime list from [stop, time, seq] items, seq defaulting to 1-based list index.
		Stop names are used as canonical stop ids, time can be null for untimed stops.'''
	sts = list()
	for n, st in enumerate(stops, 1):
		if not isinstance(st, (list, tuple)): st = [st]
		stop, dts, seq = (list(st) + [None, None])[:3]
		dts = gn.u.dts_parse(dts)
		sts.append(gn.t.feed.StopTime(
			trip_id, str(stop), seq or n, dts, dts, stop=stop ))
	return sts

def trip(trip_id, stops, route_id='R', headsign='', direction_id=None):
	trip = gn.t.feed.Trip(trip_id, route_id, 'S', headsign, direction_id)
	for st in stop_times(trip_id, stops): trip.add(st)
	return trip

def route_directions(route_id, buckets):
	'RouteDirections from list of bucket mappings with id, name, headsign, stops and headsigns keys.'
	spec = gn.t.spec
	return spec.RouteDirections(route_id, list(
		spec.DirectionBucket( route_id, b['id'], b.get('name', str(b['id'])),
			b.get('headsign', ''), b.get('stops') and spec.ReferencePattern(b['stops']),
			b.get('headsigns') or list() )
		for b in buckets ))

def stop_keys(sts): return list(st.key for st in sts)
