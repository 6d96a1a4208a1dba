"""MQTT 3.1 and 3.1.1 control packets, packet readers, and packet and buffer pools."""