"""
Chordwalk - voice leading of seventh-chord progressions on the line of fifths.

Chordwalk spells progressions of seventh chords. Every tone is a position on
the line of fifths, so C# and Db are different tones even though they sound
the same. Between two chords it enumerates the elementary transitions: the
ways four voices can move when no voice travels further than a chosen class
index along the line. The chords joined by such transitions form a chord
graph; a layered transition network over a walk in that graph then finds the
spelling of a whole progression that stays near a tonal center, moves its
voices little, and avoids augmented-sixth spellings, with weights for each
criterion.

What it offers:

- **Tones, chords and realizations.** ``Tone``, ``Chord`` and ``Realization``
  model spelled pitch classes, the 51 distinct seventh chords, and their
  four-voice spellings within a line-of-fifths ``Domain``.
- **Elementary transitions.** Enumeration by class index with optional
  preparation of the seventh, grouped into congruence classes and structural
  types.
- **Graph algorithms.** A weighted digraph with BFS, Dijkstra, Bellman-Ford,
  Yen's k shortest paths with cost bounds, and masking that always restores
  the graph.
- **Chord graph analysis.** Shortest paths, closeness, betweenness,
  communicability-betweenness and Katz centrality, and Monte-Carlo sampling
  of paths of a fixed length.
- **Optimal voicings.** The best (or worst) voicing of a progression and every
  inequivalent optimal voicing, with voices in a canonical order.
- **Export.** Graphviz DOT for graphs and standard MIDI files for voicings.

Minimal example:

```python
import chordwalk

graph = chordwalk.ChordGraph(chordwalk.all_seventh_chords())
z, voicing = graph.find_voicing([chordwalk.Chord.parse("0:d7"), chordwalk.Chord.parse("5:maj7")])
print(chordwalk.format_voicing(voicing))
```

Package-level exports: ``Chord``, ``ChordGraph``, ``Domain``, ``Realization``,
``Tone``, ``Transition``, ``all_seventh_chords``, ``format_voicing``.
"""

import chordwalk.chord_graph
import chordwalk.chords
import chordwalk.realizations
import chordwalk.tones
import chordwalk.transition_network
import chordwalk.transitions


Chord = chordwalk.chords.Chord
ChordGraph = chordwalk.chord_graph.ChordGraph
Domain = chordwalk.tones.Domain
Realization = chordwalk.realizations.Realization
Tone = chordwalk.tones.Tone
Transition = chordwalk.transitions.Transition
all_seventh_chords = chordwalk.chords.all_seventh_chords
format_voicing = chordwalk.transition_network.format_voicing
