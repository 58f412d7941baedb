### Identifier Normalizer - raw feed codes to stable canonical integer ids

import itertools as it, operator as op, functools as ft
import re

from . import utils as u


log = u.get_logger('gn.ids')


class UnrecognizedIdentifier(u.FatalFeedError):

	def __init__(self, kind, raw_code, record=None):
		self.kind, self.raw_code, self.record = kind, raw_code, record
		msg = 'Unexpected {} id/code: {!r}'.format(kind, raw_code)
		if record is not None: msg = '{} (record: {})'.format(msg, record)
		super(UnrecognizedIdentifier, self).__init__(msg)


def _casefold_keys(overrides, value_type=int):
	return dict((str(k).casefold(), value_type(v)) for k, v in (overrides or dict()).items())

def _compile_prefixes(prefixes):
	return tuple(re.compile(r'^(?:{})'.format(p), re.I) for p in prefixes or list())


@u.attr_struct(frozen=True)
class IdNormalizer:
	'''Strips feed/agency prefixes from raw codes and parses number that remains.
		Codes that are not numbers after that have to be in the overrides table.
		With search_digits=True, first run of digits anywhere in the code is used instead.'''

	kind = u.attr_init('stop')
	prefixes = u.attr_init(tuple(), converter=_compile_prefixes)
	overrides = u.attr_init(dict, converter=_casefold_keys)
	search_digits = u.attr_init(False)

	def strip(self, raw_code):
		code = (raw_code or '').strip()
		for prefix_re in self.prefixes: code = prefix_re.sub('', code, count=1)
		return code

	def lookup(self, raw_code):
		'Return override value for raw (or prefix-stripped) code, None if there is none.'
		for code in self.strip(raw_code), (raw_code or '').strip():
			try: return self.overrides[code.casefold()]
			except KeyError: pass

	def normalize(self, raw_code, record=None):
		code = self.strip(raw_code)
		m = (re.search if self.search_digits else re.fullmatch)(r'\d+', code)
		if m: return int(m.group())
		code_id = self.lookup(raw_code)
		if code_id is not None: return code_id
		raise UnrecognizedIdentifier(self.kind, raw_code, record)


@u.attr_struct(frozen=True)
class RouteIdRules:
	'''Route ids are parsed from feed route_id, except for agencies
		that use non-numeric ids, which are looked up by route short name.'''

	normalizer = u.attr_init(IdNormalizer)
	text_id_agencies = u.attr_init(tuple(), converter=tuple) # agency_id prefixes
	short_names = u.attr_init(dict, converter=_casefold_keys)

	def uses_text_ids(self, route):
		return any(route.agency_id.startswith(p) for p in self.text_id_agencies)

	def route_id(self, route):
		if not self.uses_text_ids(route):
			try: return self.normalizer.normalize(route.route_id, route)
			except UnrecognizedIdentifier: pass
		try: return self.short_names[(route.short_name or '').strip().casefold()]
		except KeyError: pass
		raise UnrecognizedIdentifier('route', route.route_id, route)


def stop_raw_code(stop):
	'Stop code if feed has a meaningful one, stop_id otherwise.'
	code = (stop.code or '').strip()
	if not code or code == '0': code = stop.stop_id
	return code

def stop_id(normalizer, stop):
	return normalizer.normalize(stop_raw_code(stop), stop)

def stop_code(normalizer, code_overrides, stop):
	'''Public stop code, as used by real-time APIs.
		Overrides can map code to an empty string, which is the only way to get one.'''
	code = normalizer.strip(stop_raw_code(stop))
	override = code_overrides.get(code.casefold())
	if override is not None:
		log.debug('Stop code override for {}: {!r} -> {!r}', stop, code, override)
		return override
	if not code: raise UnrecognizedIdentifier('stop code', stop.stop_id, stop)
	return code
