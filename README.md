# fiberkit

A small toolkit for cooperative concurrency and binary data handling:

- `fiberkit.fiber`: fibers that can `resume()` and `yield_()` back to
  their caller, with a per-thread main fiber (`get_this()`), the running
  fiber's id (`get_fiber_id()`) and a count of live fibers
  (`total_fibers()`).
- `fiberkit.simple_scheduler`: a minimal first-in first-out `Scheduler`
  that resumes fibers in turn, and the `main()` demonstration.
- `fiberkit.bytearray`: `ByteArray`, a growable buffer made of fixed-size
  blocks, with fixed-width integers in either byte order, zigzag/varint
  integers, floats, length-prefixed strings, hex dumps and file I/O.
- `fiberkit.address`: `IPv4Address` with broadcast, network and subnet
  mask helpers, `UnknownAddress` for other families, host lookup
  (`lookup`, `lookup_any`, `lookup_any_ip_address`) and local interface
  enumeration (`interface_addresses`, `iface_addresses`).
- `fiberkit.fd_manager`: `FdManager`, a registry of `FdCtx` objects that
  record whether a descriptor is a socket, whether it is non-blocking,
  and its receive and send timeouts. `fd_manager()` returns the
  process-wide registry.

## Install

```
pip install .
```

## Fibers

```python
from fiberkit.fiber import Fiber, get_this

get_this()                    # set up this thread's main fiber

def work():
    print("step 1")
    get_this().yield_()
    print("step 2")

fiber = Fiber(work, run_in_scheduler=False)
fiber.resume()                # prints "step 1"
fiber.resume()                # prints "step 2"
```

A fiber's `state` is one of `State.READY`, `State.RUNNING` and
`State.TERM`. Resuming a fiber that is not ready raises `RuntimeError`;
an exception raised inside the callback is re-raised from `resume()`.
A finished fiber can be given a new callback with `reset()`.

Only one fiber of a thread runs at a time; each user fiber executes on a
helper thread and control is passed between them explicitly.

## Scheduler

```python
from fiberkit.fiber import Fiber, get_this
from fiberkit.simple_scheduler import Scheduler

get_this()
scheduler = Scheduler()
for i in range(3):
    scheduler.schedule(Fiber(lambda i=i: print("hello world", i)))
scheduler.run()
```

`run()` resumes each queued fiber once, in order, until the queue is
empty, including fibers scheduled while it runs.

The demonstration, ten fibers each printing `hello world<i>`, runs from
the command line:

```
fiberkit-demo
```

## ByteArray

```python
from fiberkit.bytearray import ByteArray

buf = ByteArray(base_size=16)
buf.write_int32(-300)
buf.write_string_vint(b"hello")
buf.write_double(3.5)

buf.position = 0
assert buf.read_int32() == -300
assert buf.read_string_vint() == b"hello"
assert buf.read_double() == 3.5
```

Fixed-width values are big-endian by default; set
`buf.little_endian = True` to switch. Reading past the end of the data,
or setting `position` beyond the capacity, raises `IndexError`.
`to_string()` and `to_hex_string()` show the unread data without moving
the position; `write_to_file()` and `read_from_file()` move data to and
from files.

## Addresses

```python
from fiberkit.address import IPv4Address

addr = IPv4Address.create("192.168.1.10", 80)
print(addr.to_string())                      # 192.168.1.10:80
print(addr.network_address(24).to_string())  # 192.168.1.0:80
print(addr.subnet_mask(24).to_string())      # 255.255.255.0:0
```

`IPv4Address.create()` and `create_ip_address()` raise `ValueError` for
text that is not a numeric address. `lookup()` returns an empty list
when a name cannot be resolved. IPv6 results are returned as
`UnknownAddress` objects.

## What it does not do

There is no event loop or I/O multiplexing: fibers are not woken by
socket readiness or timers, and nothing in the package makes blocking
calls yield. `FdManager` only records descriptor settings; it does not
intercept reads, writes or sleeps. The scheduler is single-threaded and
has no thread pool.

## Tests

```
pip install .[test]
pytest
```