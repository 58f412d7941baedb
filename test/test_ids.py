import itertools as it, operator as op, functools as ft
import unittest

from . import _common as c

ids, feed = c.gn.ids, c.gn.t.feed


class IdNormalizerTests(unittest.TestCase):

	@classmethod
	def setUpClass(cls):
		cls.agency = c.gn.conf.load_agency_conf('niagara-falls-wego')

	def test_stop_prefixes(self):
		norm = self.agency.stop_ids
		for raw, stop_id in [
				('NFT_SUM21_Stop123', 123), ('nft_sum21_stop123', 123),
				('WEGO_SUM_65', 65), ('WEGO_FAL19_Sto4567', 4567), ('8871', 8871) ]:
			self.assertEqual(norm.normalize(raw), stop_id, raw)

	def test_stop_overrides(self):
		norm = self.agency.stop_ids
		for raw, stop_id in [
				('MAR', 900000), ('mar', 900000), ('NFT_SUM21_8CD1', 900001),
				('Sta&6039', 900004), ('FV&6760', 900007), ('TablRock', 8871) ]:
			self.assertEqual(norm.normalize(raw), stop_id, raw)

	def test_unrecognized(self):
		stop = feed.Stop('NFT_SUM21_StopXYZ', name='Nowhere')
		with self.assertRaises(ids.UnrecognizedIdentifier) as ctx:
			ids.stop_id(self.agency.stop_ids, stop)
		err = ctx.exception
		self.assertEqual((err.kind, err.raw_code, err.record), ('stop', 'NFT_SUM21_StopXYZ', stop))
		self.assertIn('NFT_SUM21_StopXYZ', str(err))
		self.assertIsInstance(err, c.gn.u.FatalFeedError)

	def test_stop_digits_are_not_searched(self):
		with self.assertRaises(ids.UnrecognizedIdentifier):
			self.agency.stop_ids.normalize('Stop 12 B')

	def test_stop_code(self):
		norm, codes = self.agency.stop_ids, self.agency.stop_codes
		for stop, code in [
				(feed.Stop('WEGO_SUM_65'), '65'),
				(feed.Stop('WEGO_SUM_65', code='0'), '65'),
				(feed.Stop('X1', code='NFT_SUM21_Stop1234'), '1234'),
				(feed.Stop('NFT_SUM21_StopTablRock'), '8871'),
				(feed.Stop('X2', code='TablRock'), '8871'),
				(feed.Stop('NFT_SUM21_Sta&6039'), '') ]:
			self.assertEqual(ids.stop_code(norm, codes, stop), code, stop)

	def test_stop_code_empty(self):
		with self.assertRaises(ids.UnrecognizedIdentifier):
			ids.stop_code(self.agency.stop_ids, dict(), feed.Stop('NFT_SUM21_Stop'))

	def test_route_ids(self):
		rules = self.agency.route_ids
		for route, route_id in [
				(feed.Route('WEGO_SUM21_601', 'Niagara Falls Transit & WEGO', '601'), 601),
				(feed.Route('NFT_SUM21_604', 'Niagara Falls Transit & WEGO', '604'), 604),
				(feed.Route('WEGO Blue 602', 'Niagara Parks Commission WeGo', 'Blue'), 602),
				(feed.Route('abc-def', 'AllNRT_NF', 'Red'), 601),
				(feed.Route('AllNRT_NF_23', 'AllNRT_NF', 'GREEN'), 603),
				(feed.Route('WEGO-Orange', 'Niagara Falls Transit', 'orange'), 604) ]:
			self.assertEqual(rules.route_id(route), route_id, route)

	def test_route_unrecognized(self):
		route = feed.Route('AllNRT_NF_23', 'AllNRT_NF', 'Purple')
		with self.assertRaises(ids.UnrecognizedIdentifier) as ctx:
			self.agency.route_ids.route_id(route)
		self.assertEqual((ctx.exception.kind, ctx.exception.record), ('route', route))
