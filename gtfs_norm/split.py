### Trip Splitter - materializes two direction variants per route and assigns trips to them

import itertools as it, operator as op, functools as ft

from . import utils as u, direction


log = u.get_logger('gn.split')


def split(route, route_dirs, trips, order_by_time=False, headsign_func=None):
	'''Assign each trip of the route to one of two direction buckets.
		Trips are updated in-place: bucket, direction_id and headsign are set from the bucket,
			and stop-times are replaced by re-ordered ones, if route has reference patterns.
		Scheduled times and stop-times themselves are never changed or dropped.
		Returns {bucket: [trip, ...]} dict, always with both buckets in it.'''
	groups = dict((bucket, list()) for bucket in route_dirs)
	for trip in trips:
		headsign = trip.headsign if not headsign_func else headsign_func(trip.headsign)
		bucket, stop_times = direction.classify(
			route_dirs, trip, headsign=headsign, order_by_time=order_by_time )
		if stop_times is not None: trip.stops = stop_times
		trip.bucket, trip.direction_id, trip.headsign = bucket, bucket.id, bucket.headsign
		groups[bucket].append(trip)
	log.debug( 'Route {}: split {} trip(s) into directions: {}', route.id, len(trips),
		', '.join('{}={}'.format(bucket.name, len(ts)) for bucket, ts in groups.items()) )
	return groups

def recombine(groups):
	'Flatten split groups back into a list of trips, in bucket order.'
	return list(it.chain.from_iterable(groups.values()))
