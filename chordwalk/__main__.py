import argparse
import logging
import os
import random
import sys
import typing

import yaml

import chordwalk.chord_graph
import chordwalk.chords
import chordwalk.export
import chordwalk.tones
import chordwalk.transition_network
import chordwalk.transitions


logger = logging.getLogger(__name__)

CENTRALITY_MEASURES: typing.List[str] = ["betweenness", "closeness", "communicability", "katz"]

# Settings a config file may provide, with their library defaults.
DEFAULT_SETTINGS: typing.Dict[str, typing.Any] = {
	"class_index": chordwalk.chord_graph.DEFAULT_CLASS_INDEX,
	"domain": "-15:15",
	"preparation": chordwalk.transitions.PreparationScheme.NONE.value,
	"allow_augmented": False,
	"weights": list(chordwalk.transition_network.DEFAULT_WEIGHTS),
	"tonal_center": 0,
	"label_format": "symbol",
	"vertex_centrality": "none",
	"centrality": "betweenness",
}


def load_config (config_path: str) -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		config = yaml.safe_load(f) or {}

	if not isinstance(config, dict):
		raise ValueError(f"Config file {config_path} must hold a mapping")

	unknown = sorted(set(config) - set(DEFAULT_SETTINGS))

	if unknown:
		logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

	return config


def resolve_settings (args: argparse.Namespace, config: dict) -> typing.Dict[str, typing.Any]:

	"""Merge defaults, config file values and command-line options, in rising priority."""

	settings = dict(DEFAULT_SETTINGS)

	for key in DEFAULT_SETTINGS:

		if key in config:
			settings[key] = config[key]

		value = getattr(args, key, None)

		if value is not None:
			settings[key] = value

	weights = [float(w) for w in settings["weights"]]

	if len(weights) != 3 or any(w < 0 for w in weights):
		raise ValueError(f"Weights must be three non-negative numbers, got {settings['weights']}")

	settings["weights"] = weights
	settings["class_index"] = int(settings["class_index"])
	settings["tonal_center"] = int(settings["tonal_center"])
	settings["domain"] = chordwalk.tones.Domain.parse(str(settings["domain"]))
	settings["preparation"] = chordwalk.transitions.PreparationScheme(settings["preparation"])

	if settings["label_format"] not in chordwalk.export.LABEL_FORMATS:
		raise ValueError(f"Unknown label format: {settings['label_format']}")

	if settings["vertex_centrality"] not in ["none"] + chordwalk.export.CENTRALITY_FORMATS:
		raise ValueError(f"Unknown vertex centrality format: {settings['vertex_centrality']}")

	if settings["centrality"] not in CENTRALITY_MEASURES:
		raise ValueError(f"Unknown centrality measure: {settings['centrality']}")

	return settings


def read_chords (args: argparse.Namespace, progression: bool = False) -> typing.List[chordwalk.chords.Chord]:

	"""Collect chords from the positional arguments or an input file.

	A progression keeps every chord in order, repeats included; otherwise the
	chords form a set and family symbols such as ``d7`` are expanded.
	"""

	tokens = list(getattr(args, "chords", []) or [])

	if getattr(args, "input", None):

		with open(args.input, 'r') as f:
			text = f.read()

		for separator in ",;\t\n":
			text = text.replace(separator, " ")

		tokens.extend(text.split())

	if progression:
		return [chordwalk.chords.Chord.parse(token) for token in tokens]

	return chordwalk.chords.chords_from_symbols(tokens)


def build_graph (
	chords: typing.Sequence[chordwalk.chords.Chord],
	settings: typing.Dict[str, typing.Any],
	use_labels: bool = True
) -> chordwalk.chord_graph.ChordGraph:

	return chordwalk.chord_graph.ChordGraph(
		chords,
		class_index=settings["class_index"],
		support=settings["domain"],
		preparation=settings["preparation"],
		allow_augmented=settings["allow_augmented"],
		use_labels=use_labels,
	)


def vertex_centrality (graph: chordwalk.chord_graph.ChordGraph, measure: str) -> typing.Dict[int, float]:

	"""Compute a centrality measure for every vertex."""

	if measure == "betweenness":
		path_map = graph.all_shortest_paths()
		return {i: graph.betweenness_centrality(i, path_map) for i in graph.vertex_ids()}

	if measure == "closeness":
		return {i: graph.closeness_centrality(i) for i in graph.vertex_ids()}

	if measure == "communicability":
		return {i: graph.communicability_betweenness_centrality(i) for i in graph.vertex_ids()}

	return {i: graph.katz_centrality(i) for i in graph.vertex_ids()}


def key_signature (z: int) -> str:

	"""Describe the key signature centred on ``z``."""

	if z == 0:
		return "0 sharps/flats"

	return f"{abs(z)} {'sharps' if z > 0 else 'flats'}"


def degree_and_class (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> typing.Tuple[int, int]:

	"""Return the requested transition degree (0 for any) and the class index to search."""

	degree = getattr(args, "degree", None)

	if degree is None:
		return 0, settings["class_index"]

	if degree <= 0:
		raise ValueError(f"Degree must be a positive integer, got {degree}")

	return degree, degree


def print_transitions (
	found: typing.Sequence[chordwalk.transitions.Transition],
	args: argparse.Namespace,
	settings: typing.Dict[str, typing.Any]
) -> None:

	if args.lilypond:
		prepared = settings["preparation"] == chordwalk.transitions.PreparationScheme.GENERIC
		sys.stdout.write(chordwalk.export.transitions_to_lily(found, prepared, args.chord_symbols))
		return

	for transition in found:
		print(transition)


def run_transitions (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> None:

	chords = read_chords(args)

	if len(chords) != 2:
		raise ValueError(f"Exactly two different chords are needed, found {len(chords)}")

	c1, c2 = chords
	degree, class_index = degree_and_class(args, settings)
	found = chordwalk.transitions.elementary_classes(
		c1, c2, class_index, settings["preparation"], settings["tonal_center"], settings["allow_augmented"]
	)

	if degree:
		found = [t for t in found if t.degree() == degree]

	logger.info(f"Found {len(found)} transitions between {c1.symbol()} and {c2.symbol()}")

	print_transitions(found, args, settings)


def run_classes (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> None:

	chords = read_chords(args)

	if len(chords) < 2:
		raise ValueError("At least two chords are needed")

	degree, class_index = degree_and_class(args, settings)
	found = chordwalk.transitions.elementary_types(
		chords, class_index, settings["preparation"], settings["tonal_center"], settings["allow_augmented"]
	)

	if degree:
		found = [t for t in found if t.degree() == degree]

	logger.info(f"Found {len(found)} transition types for {len(chords)} chords")

	print_transitions(found, args, settings)


def run_graph (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> None:

	chords = read_chords(args) or chordwalk.chords.all_seventh_chords()
	graph = build_graph(chords, settings, use_labels=settings["label_format"] != "number")

	undirected = settings["preparation"] == chordwalk.transitions.PreparationScheme.NONE
	centrality = None

	if settings["vertex_centrality"] != "none":

		centrality = vertex_centrality(graph, settings["centrality"])

		if settings["vertex_centrality"] == "color":
			peak = max(centrality.values(), default=0.0)
			if peak > 0:
				centrality = {i: value / peak for i, value in centrality.items()}

	sys.stdout.write(chordwalk.export.graph_to_dot(
		graph,
		undirected=undirected,
		label_format=settings["label_format"],
		centrality=centrality,
		centrality_format=settings["vertex_centrality"] if centrality is not None else "label",
	))


def run_voicing (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> None:

	chords = read_chords(args, progression=True)
	graph = build_graph(chordwalk.chords.all_seventh_chords(), settings)

	z, voicing = graph.find_voicing(chords, settings["weights"], worst=args.worst)

	print(chordwalk.transition_network.format_voicing(voicing))
	logger.info(f"Recommended key signature: {key_signature(z)}")

	if args.midi:
		chordwalk.export.voicing_to_midi(voicing, args.midi)


def run_voicings (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> None:

	chords = read_chords(args, progression=True)
	graph = build_graph(chordwalk.chords.all_seventh_chords(), settings)

	voicings = graph.find_voicings(chords, settings["weights"])

	logger.info(f"Found {len(voicings)} voicing(s)")

	for number, (z, voicing) in enumerate(voicings, start=1):
		print()
		print(f"Voicing #{number}:")
		print(chordwalk.transition_network.format_voicing(voicing))

		if args.midi:
			root, ext = os.path.splitext(args.midi)
			chordwalk.export.voicing_to_midi(voicing, f"{root}-{number}{ext or '.mid'}")


def run_paths (args: argparse.Namespace, settings: typing.Dict[str, typing.Any]) -> None:

	chords = read_chords(args) or chordwalk.chords.all_seventh_chords()
	graph = build_graph(chords, settings)

	src = graph.find_vertex_by_chord(chordwalk.chords.Chord.parse(args.source))
	dest = graph.find_vertex_by_chord(chordwalk.chords.Chord.parse(args.target))

	if src == 0 or dest == 0:
		raise ValueError("Both endpoints must be chords of the graph")

	if args.length is None:
		paths = graph.shortest_paths(src, dest)
	else:
		rng = random.Random(args.seed)
		paths = graph.find_fixed_length_paths(src, dest, args.length, args.limit, rng=rng)

	logger.info(f"Found {len(paths)} path(s)")

	for path in paths:
		print(" ".join(graph.vertex_chord(i).symbol() for i in path))


def build_parser () -> argparse.ArgumentParser:

	"""Return the command-line parser."""

	common = argparse.ArgumentParser(add_help=False)
	common.add_argument("--config", help="YAML file with default settings")
	common.add_argument("-c", "--class", dest="class_index", type=int, help="class index (largest line-of-fifths move per voice)")
	common.add_argument("-d", "--domain", help="line-of-fifths support, e.g. '-15:15' or '-7:-6,-4:-1'")
	common.add_argument("-p", "--preparation", choices=[scheme.value for scheme in chordwalk.transitions.PreparationScheme])
	common.add_argument("-a", "--allow-augmented", action="store_true", default=None, help="allow augmented-sixth spellings")
	common.add_argument("-w", "--weights", type=float, nargs=3, metavar=("W1", "W2", "W3"), help="non-negative cost weights")
	common.add_argument("-z", "--tonal-center", type=int, help="tonal center on the line of fifths")
	common.add_argument("-i", "--input", help="read chords from a file")
	common.add_argument("-q", "--quiet", action="store_true", help="only log warnings and errors")

	listing = argparse.ArgumentParser(add_help=False)
	listing.add_argument("-g", "--degree", type=int, help="only transitions of exactly this degree (replaces the class index)")
	listing.add_argument("--lilypond", action="store_true", help="write the transitions as LilyPond code")
	listing.add_argument("--chord-symbols", action="store_true", help="print chord names above the LilyPond chords")

	parser = argparse.ArgumentParser(prog="chordwalk", description="Voice leading of seventh-chord progressions on the line of fifths.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	transitions = subparsers.add_parser("transitions", parents=[common, listing], help="elementary transition classes between two chords")
	transitions.add_argument("chords", nargs="*")
	transitions.set_defaults(func=run_transitions)

	classes = subparsers.add_parser("classes", parents=[common, listing], help="transition types among several chords")
	classes.add_argument("chords", nargs="*")
	classes.set_defaults(func=run_classes)

	graph = subparsers.add_parser("graph", parents=[common], help="write the chord graph in DOT format")
	graph.add_argument("chords", nargs="*")
	graph.add_argument("-l", "--label-format", choices=chordwalk.export.LABEL_FORMATS)
	graph.add_argument("-v", "--vertex-centrality", choices=["none"] + chordwalk.export.CENTRALITY_FORMATS)
	graph.add_argument("--centrality", choices=CENTRALITY_MEASURES)
	graph.set_defaults(func=run_graph)

	voicing = subparsers.add_parser("voicing", parents=[common], help="find an optimal voicing of a progression")
	voicing.add_argument("chords", nargs="*")
	voicing.add_argument("--worst", action="store_true", help="find the dearest voicing instead")
	voicing.add_argument("--midi", help="also write the voicing to this MIDI file")
	voicing.set_defaults(func=run_voicing)

	voicings = subparsers.add_parser("voicings", parents=[common], help="find every inequivalent optimal voicing")
	voicings.add_argument("chords", nargs="*")
	voicings.add_argument("--midi", help="also write each voicing to a numbered MIDI file")
	voicings.set_defaults(func=run_voicings)

	paths = subparsers.add_parser("paths", parents=[common], help="shortest or fixed-length paths between two chords")
	paths.add_argument("source")
	paths.add_argument("target")
	paths.add_argument("chords", nargs="*", help="graph chords (default: all 51)")
	paths.add_argument("-n", "--length", type=int, help="number of steps; shortest paths if omitted")
	paths.add_argument("--limit", type=int, default=10)
	paths.add_argument("--seed", type=int)
	paths.set_defaults(func=run_paths)

	return parser


def main (argv: typing.Optional[typing.Sequence[str]] = None) -> int:

	"""
	Main entry point for the chordwalk command line.
	"""

	parser = build_parser()
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

	try:
		config = load_config(args.config) if args.config else {}
		settings = resolve_settings(args, config)
		args.func(args, settings)

	except (
		ValueError,
		OSError,
		chordwalk.transition_network.InvalidWalkError,
		chordwalk.chord_graph.CentralityError,
	) as exc:
		logger.error(str(exc))
		return 1

	return 0


if __name__ == "__main__":
	sys.exit(main())
