# jbodraid

A linear block device that joins the disks of a JBOD (Just a Bunch Of Disks)
storage server into one address space. The package talks to the server over
TCP.

The device has 16 disks. Each disk has 256 blocks of 256 bytes, so the whole
device holds 1 MiB. Reads and writes can start at any byte address. One read
or write can move at most 1024 bytes, and it may cross block and disk
boundaries.

## Modules

- `jbodraid.jbod` holds the device geometry constants (`NUM_DISKS`,
  `DISK_SIZE`, `BLOCK_SIZE`, `NUM_BLOCKS_PER_DISK`, `TOTAL_SIZE`), the
  `Command` and `JbodError` enumerations, and `encode_op` / `decode_op`.
  These two pack a command, a disk number and a block number into a 32-bit
  opcode and unpack it again. `encode_op` raises `ValueError` when a disk or
  block number is out of range.
- `jbodraid.net` holds the wire protocol and `JbodClient`.
  - Each packet starts with a 5-byte header: a big-endian opcode and an info
    byte. When bit 1 of the info byte is set, a 256-byte block follows.
  - `encode_packet` builds a packet and `decode_header` parses a header.
  - `JbodClient.connect(ip, port)` opens the connection. The defaults are
    `127.0.0.1` and `3333`.
  - `JbodClient.operation(op, block)` sends one request. It returns a
    `Response` with `op`, `ret`, `block` and `ok`. `ok` is false when bit 0
    of the info byte is set.
  - `JbodClient.disconnect()` closes the connection. The client also works
    as a context manager and disconnects on exit.
  - Socket failures raise `NetError`.
- `jbodraid.cache` holds `Cache`, a fixed-size block cache.
  - `create(n)` accepts 2 to 4096 entries. `destroy()` drops the entries and
    keeps the statistics.
  - `lookup` returns a cached block or `None`. `insert` adds a block. When
    the cache is full it evicts the entry with the fewest accesses, and on a
    tie the one inserted or updated earliest. `update` replaces a cached
    block if it is present.
  - `enabled()` is true only when the cache exists and has more than two
    entries.
  - `hit_rate()` returns the hit percentage, or NaN before any lookup.
    `print_hit_rate(stream)` writes the counts and the rate, to stderr by
    default.
  - Misuse raises `CacheError`, for example creating the cache twice,
    inserting a block that is already cached, or using the cache before
    `create`.
- `jbodraid.mdadm` holds `Mdadm(client, cache=None)`, the linear device.
  - `mount`, `unmount`, `write_permission` and `revoke_write_permission`
    send the matching commands. Mounting twice or unmounting when not
    mounted raises `MdadmError`. Granting or revoking a permission that is
    already in that state sends nothing.
  - `read(addr, length)` returns bytes, and `write(addr, data)` returns the
    number of bytes written. Both raise `MdadmError` when the device is not
    mounted, when the length is over 1024, or when the range runs past the
    end of the device. A read must also end strictly before the last byte
    address.
  - When the cache is enabled, reads look blocks up in the cache first and
    store fetched blocks in it. Successful block writes update cached copies.
- `jbodraid.util` holds:
  - `DebugLog`, a log that stays silent until `enable()` is called. It
    writes to stderr, or to a file chosen with `set_logfile()`. `close()`
    closes that file.
  - `sha1_sig(buf)`, the first 15 bytes of the SHA-1 digest written as
    `0x.. ` groups.
  - `get_rand(minimum, maximum)`, a cryptographically random number scaled
    into the range.
- `jbodraid.tester` runs workload files against a server. Its public names
  are `parse_line`, `run_workload`, `main` and `WorkloadError`.

## Library use

```python
from jbodraid.net import JbodClient
from jbodraid.cache import Cache
from jbodraid.mdadm import Mdadm

cache = Cache()
cache.create(1024)

with JbodClient() as client:
    client.connect("127.0.0.1", 3333)
    device = Mdadm(client, cache)
    device.mount()
    device.write_permission()
    device.write(1000, b"\x2a" * 600)
    data = device.read(1000, 600)
    device.unmount()

print(cache.hit_rate())
```

`Mdadm` only needs an object with an `operation(op, block)` method that
returns a `Response`. A stand-in object can take the place of a live server.

## Running a workload

```
jbodraid-tester -w workload.txt -s 1024
```

The runner always connects to `127.0.0.1:3333`.

- `-w FILE` names the workload file. This option is required.
- `-s N` sets the number of cache entries. Values from 2 to 4096 are
  accepted. Leave it out, or give 0, to run without a cache. A cache of 2
  entries is created but never used.
- `-h` prints the usage text.

A workload file has one command per line:

```
MOUNT
WRITE_PERMIT
WRITE 0 256 65
READ 0 256 0
SIGNALL
UNMOUNT
```

- `MOUNT`, `UNMOUNT`, `WRITE_PERMIT` and `SIGNALL` are matched as line
  prefixes, in that order. A line such as `WRITE_PERMIT_REVOKE` begins with
  `WRITE_PERMIT`, so it grants write permission.
- `WRITE addr len ch` fills `len` bytes with the byte value `ch` and writes
  them starting at `addr`.
- `READ addr len ch` reads `len` bytes starting at `addr`. The fourth field
  must be there, but a read ignores it.
- `SIGNALL` asks the server to sign every block. Each reply block is printed
  to standard output, up to its first NUL byte.

An operation that the device refuses, such as a read before `MOUNT`, is
skipped. A line that cannot be parsed, or an unknown command, stops the run
with an error message and a non-zero exit status. At the end of the run the
cache hit statistics go to standard error.

## What it does not include

There is no JBOD server in this package. Workloads and the `Mdadm` device
need a server that speaks the protocol described above, or a stand-in object
with an `operation` method. The device keeps no data of its own.

## Tests

```
pip install -e .[test]
pytest
```