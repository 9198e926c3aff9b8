"""Minimal pdbridge script.

Run it from a Pure Data object, or by hand:

    printf '{"type":"message","selector":"float","args":[4]}\n' | pdbridge examples/hello.py
"""

from pdbridge import pd

print("Hello from pdbridge!")


@pd.on("bang")
def on_bang(inlet):
    pd.emit(0, "Hello from Python!")
    print("Sent: Hello from Python!")


@pd.on("float")
def on_float(inlet, value):
    doubled = value * 2
    pd.emit(0, doubled)
    print(f"Received float: {value}, sent back: {doubled}")


@pd.on("list")
def on_list(inlet, *values):
    total = sum(value for value in values if isinstance(value, (int, float)))
    pd.emit(0, total)
    print(f"Sum: {total}")


@pd.on("anything")
def on_anything(inlet, *args):
    pd.post("unhandled message", pd.messagename, *args)


print("pdbridge handlers registered successfully!")
