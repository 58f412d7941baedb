### Naming/style normalization for headsigns, stop and route names

import itertools as it, operator as op, functools as ft
import re


street_types = [
	('Avenue', 'Av'), ('Ave', 'Av'), ('Boulevard', 'Blvd'), ('Centre', 'Ctr'),
	('Center', 'Ctr'), ('Court', 'Crt'), ('Crescent', 'Cr'), ('Drive', 'Dr'),
	('Highway', 'Hwy'), ('Hill', 'Hl'), ('Lane', 'Ln'), ('Parkway', 'Pkwy'),
	('Parks', 'Pks'), ('Place', 'Pl'), ('Road', 'Rd'), ('Square', 'Sq'),
	('Street', 'St'), ('Terrace', 'Terr') ]
street_types_re = list(
	(re.compile(r'\b{}\b'.format(k), re.I), v) for k, v in street_types )

number_words = [
	('first', '1st'), ('second', '2nd'), ('third', '3rd'), ('fourth', '4th'),
	('fifth', '5th'), ('sixth', '6th'), ('seventh', '7th'), ('eighth', '8th'),
	('ninth', '9th'), ('tenth', '10th') ]
number_words_re = list(
	(re.compile(r'\b{}\b'.format(k), re.I), v) for k, v in number_words )

headsign_rsn_re = re.compile(r'^\d+ ?')
headsign_rln_dash_re = re.compile(r'^[^\-]+-')
headsign_bounds_re = re.compile(r'^(.* )?(inbound|outbound)/', re.I)
headsign_to_re = re.compile(r'^.*?\bto\b\s+', re.I)
headsign_via_re = re.compile(r'\s+\bvia\b.*$', re.I)

label_spaces_re = re.compile(r'\s+')
label_punct_re = re.compile(r'\s+([,.;:)])|([(])\s+')
label_word_re = re.compile(r"(^|[\s\-/(&])([a-z])")


def is_uppercase_only(s):
	letters = list(filter(str.isalpha, s))
	return bool(letters) and all(c.isupper() for c in letters)

def clean_street_types(s):
	for pat, repl in street_types_re: s = pat.sub(repl, s)
	return s

def clean_numbers(s):
	for pat, repl in number_words_re: s = pat.sub(repl, s)
	return s

def keep_to_and_remove_via(s):
	'"Stop A to Stop B via Street C" -> "Stop B".'
	s = headsign_via_re.sub('', s)
	return headsign_to_re.sub('', s)

def clean_label(s):
	s = label_spaces_re.sub(' ', s).strip(' -/')
	s = label_punct_re.sub(lambda m: m.group(1) or m.group(2), s)
	return label_word_re.sub(lambda m: m.group(1) + m.group(2).upper(), s)


def clean_trip_headsign(headsign):
	headsign = (headsign or '').strip()
	if is_uppercase_only(headsign): headsign = headsign.lower()
	headsign = headsign_rsn_re.sub('', headsign)
	headsign = headsign_rln_dash_re.sub('', headsign)
	headsign = headsign_bounds_re.sub('', headsign)
	headsign = keep_to_and_remove_via(headsign)
	headsign = clean_numbers(headsign)
	headsign = clean_street_types(headsign)
	return clean_label(headsign)

def clean_stop_name(name):
	name = (name or '').strip()
	if is_uppercase_only(name): name = name.lower()
	name = clean_numbers(name)
	name = clean_street_types(name)
	return clean_label(name)

def clean_route_long_name(name):
	return clean_stop_name(name)
