"""Machine-side half of the membrane, emitted as source ahead of user code.

The prelude builds linked proxies on top of the four surface functions the
host registers (``getFromHeaven``, ``sendToHeaven``, ``prayToHeaven``,
``log``).  It targets any engine with ES2015 ``Proxy``.

A linked proxy answers three names locally, without a host round-trip:

* ``__isHeavenlyObject`` - always ``true``
* ``__path`` - the host path it stands for
* ``toJSON`` - returns the placeholder the host rehydrates, so a literal
  that embeds linked objects serialises into sentinels.

Every other property read, write and call is forwarded to the host as JSON
text.
"""

from __future__ import annotations

__all__ = ["LINK_FUNCTION", "LINK_OBJECT", "MACHINE_PRELUDE", "PRELUDE_FUNCTIONS"]

LINK_OBJECT = "linkHeavenlyObject"
LINK_FUNCTION = "linkHeavenlyFunction"

PRELUDE_FUNCTIONS: tuple[str, ...] = (
    LINK_OBJECT,
    LINK_FUNCTION,
    "prepareArguments",
)

MACHINE_PRELUDE = """\
function __heavenlyValue(wire) {
  if (wire.type === 'object') {
    return linkHeavenlyObject(wire.path, wire.keys || []);
  }
  if (wire.type === 'function') {
    return linkHeavenlyFunction(wire.path, wire.keys || []);
  }
  return wire.value;
}

function prepareArguments(args) {
  return Array.prototype.slice.call(args).map(function (arg) {
    if ((typeof arg === 'object' || typeof arg === 'function') && arg !== null) {
      if (arg.__isHeavenlyObject) {
        return {
          type: typeof arg === 'function' ? 'function' : 'object',
          path: arg.__path
        };
      }
      return { type: 'object-literal', value: JSON.stringify(arg) };
    }
    return { type: 'primitive', value: arg };
  });
}

function linkHeavenlyObject(path, keys, isFunction) {
  var target = isFunction ? function () {} : {};
  if (!isFunction) {
    for (var i = 0; i < keys.length; i++) {
      target[keys[i]] = undefined;
    }
  }
  var handler = {
    get: function (target, name) {
      if (name === '__isHeavenlyObject') {
        return true;
      }
      if (name === '__path') {
        return path;
      }
      if (name === 'toJSON') {
        return function () {
          return { __isHeavenlyObject: true, __path: path };
        };
      }
      if (typeof name === 'symbol') {
        return undefined;
      }
      return __heavenlyValue(JSON.parse(getFromHeaven(JSON.stringify(path.concat(name)))));
    },
    set: function (target, name, value) {
      var wire = prepareArguments([value])[0];
      sendToHeaven(JSON.stringify(path.concat(name)), JSON.stringify(wire));
      return true;
    },
    has: function (target, name) {
      return keys.indexOf(name) !== -1 || name in target;
    }
  };
  if (isFunction) {
    handler.apply = function (target, thisArg, args) {
      var wires = prepareArguments(args);
      return __heavenlyValue(JSON.parse(prayToHeaven(JSON.stringify(path), JSON.stringify(wires))));
    };
  }
  return new Proxy(target, handler);
}

function linkHeavenlyFunction(path, keys) {
  return linkHeavenlyObject(path, keys, true);
}
"""
