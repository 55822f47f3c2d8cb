import geneticshorts as gs

engine = gs.ChromosomeEngine(amount = 8, set = 1)
values = engine.generate()

print(' '.join(f'0x{int(value):04X}' for value in values))
