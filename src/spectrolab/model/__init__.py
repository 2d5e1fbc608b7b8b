"""
The MODEL layer contains pure data structures and laboratory rules.
It has NO knowledge of the GUI (Qt) or the plotting widgets.
It deals with Labware, Optics, the Instruction Script and Undo History.
"""
