import geneticshorts as gs

engine = gs.ChromosomeEngine(
    amount = 500,
    set = 3,
    seed = 1,
    progress_bars = 1,
    verbose = 1,
    )

values = engine.generate()

print(f"Generations evolved: {engine.history.generations}")
print(f"Fittest chromosome: {engine.history.fittest['chromosome']}")
print(f"First values: {[hex(int(value)) for value in values]}")

engine.history.plot(show_plot = True)
