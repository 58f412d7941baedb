# Visualization tools, mostly useful for debugging agency tables

import itertools as it, operator as op, functools as ft
from collections import defaultdict
import contextlib


print_fmt = lambda tpl, *a, file=None, end='\n', **k:\
	print(tpl.format(*a,**k), file=file, end=end)

dot_str = lambda n: '"{}"'.format(str(n).replace('"', '\\"'))
dot_html = lambda n: '<{}>'.format(n)


@contextlib.contextmanager
def dot_graph(dst, dot_opts, indent=2):
	print_fmt('digraph {{', file=dst)
	if isinstance(indent, int): indent = ' '*indent
	p = lambda tpl, *a, end='\n', **k:\
		print_fmt(indent + tpl, *a, file=dst, end=end, **k)
	p('### Defaults')
	for t, opts in (dot_opts or dict()).items():
		p('{} [ {} ]'.format(t, ', '.join('{}={}'.format(k, v) for k, v in opts.items())))
	yield p
	print_fmt('}}', file=dst)


def dot_for_patterns(table, dst, stop_names=None, dot_opts=None):
	'''Graph of all reference patterns in PatternTable,
		with stops as nodes and edges labelled by route/direction names.
		stop_names can be a {canonical_id: name} mapping for node labels.'''
	stop_labels, stop_edges = defaultdict(set), defaultdict(set)
	for route_dirs in sorted(table, key=op.attrgetter('route_id')):
		if not route_dirs.has_patterns: continue
		for bucket in route_dirs:
			stop_prev = None
			for n, stop in enumerate(bucket.pattern):
				stop_labels[stop].add('{}/{}[{}]'.format(bucket.route_id, bucket.name, n))
				if stop_prev is not None:
					stop_edges[stop_prev, stop].add('{}/{}'.format(bucket.route_id, bucket.name))
				stop_prev = stop

	stop_names = stop_names or dict()
	dot_opts = dot_opts or dict()
	dot_opts.setdefault('graph', dict()).setdefault('rankdir', 'LR')
	with dot_graph(dst, dot_opts) as p:

		p('')
		p('### Labels')
		for stop, bucket_names in sorted(stop_labels.items()):
			label = '<b>{}</b>{}'.format(
				stop_names.get(stop, stop), '<br/>- '.join([''] + sorted(bucket_names)) )
			p('{} [label={}]'.format(dot_str('stop-{}'.format(stop)), dot_html(label)))

		p('')
		p('### Edges')
		for (stop_src, stop_dst), bucket_names in sorted(stop_edges.items()):
			p( '{} -> {} [label={}]', dot_str('stop-{}'.format(stop_src)),
				dot_str('stop-{}'.format(stop_dst)), dot_str(', '.join(sorted(bucket_names))) )
